"""
Gateway API Endpoints

This package contains all FastAPI routers for the gateway:
- submit: Public form submissions (POST /submit/{kind})
- admin_content, admin_resources, admin_board_members: Site content
- admin_users, admin_role: Back office users and admin role assignment
- admin_settings: Active period settings (POST /admin/settings/{type})
- admin_status: Review decisions on nominations and applications
- admin_log: Audit entries from the admin UI (POST /admin/log)
- secure_upload: Signed upload URLs (POST /secure-upload)
- rollover: Period rollover (POST /rollover)
- deps: Shared dependencies (clients, clock, admin gate)
"""
