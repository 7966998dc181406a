# ============================================
# CENTRALIZED ROLE → PERMISSIONS MAP
# ============================================
ROLE_PERMISSIONS = {

    # =====================================================
    # SUPER ADMIN: Full access to everything
    # =====================================================
    "super_admin": ["*"],

    # =====================================================
    # ADMIN: site editor, access matrix, all ledgers
    # =====================================================
    "admin": [
        # Admin console
        "admin:access",
        "site_config:write",
        "security:read",

        # Access matrix
        "users:read", "users:write", "users:delete",

        # App directory
        "external_apps:read", "external_apps:write",

        # Activity ledger
        "work_logs:create", "work_logs:read", "work_logs:delete",

        # Market intelligence
        "market:create", "market:read", "market:read_own", "market:delete",

        # Dashboard
        "dashboard:access",
    ],

    # =====================================================
    # EMPLOYEE: staff; sees every survey record
    # =====================================================
    "employee": [
        "external_apps:read",
        "work_logs:create",
        "market:create", "market:read", "market:read_own",
        "dashboard:access",
    ],

    # =====================================================
    # CLIENT: default for first sign-in
    # =====================================================
    "client": [
        "external_apps:read",
        "work_logs:create",
        "market:create", "market:read_own",
        "dashboard:access",
    ],
}


# Roles that count as staff in the dashboard
STAFF_ROLES = {"super_admin", "admin", "employee"}

ADMIN_ROLES = {"super_admin", "admin"}

# Roles an admin may hand out from the access matrix
ASSIGNABLE_ROLES = ["client", "employee", "admin"]
