# ============================================
# CENTRALIZED ROLE → PERMISSIONS MAP
# ============================================
from models.enums import Role


ROLE_PERMISSIONS = {

    # =====================================================
    # SYSTEM ADMIN: approves requests, sees everything
    # =====================================================
    Role.admin: frozenset({
        "manage_users",
        "manage_buildings",
        "manage_requests",
        "manage_workers",
        "manage_companies",
        "view_analytics",
        "system_settings",

        # Approval workflow
        "approve_requests",
        "assign_workers",

        "view_all_data",
    }),

    # =====================================================
    # MANAGER: runs a cleaning company, cannot approve
    # =====================================================
    Role.manager: frozenset({
        "manage_buildings",
        "manage_workers",
        "view_requests",
        "assign_workers",
        "view_analytics",
        "manage_company_data",
    }),

    # =====================================================
    # CLIENT: building owner
    # =====================================================
    Role.client: frozenset({
        "create_requests",
        "view_own_buildings",
        "view_own_requests",
        "manage_own_profile",
    }),

    # =====================================================
    # WORKER: cleaner in the field
    # =====================================================
    Role.worker: frozenset({
        "view_assigned_jobs",
        "update_job_status",
        "upload_photos",
        "manage_own_profile",
        "view_assigned_requests",
    }),
}


ROLE_DISPLAY_NAMES = {
    Role.admin: "System Administrator",
    Role.manager: "Manager",
    Role.client: "Client",
    Role.worker: "Worker",
}
