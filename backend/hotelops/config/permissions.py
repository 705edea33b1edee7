"""
Permission registry: single source of truth for all permission keys, labels,
categories, per-role grants and UI route access.

Adding a permission means adding it to ALL_PERMISSIONS and to every role in
ROLE_PERMISSIONS that should hold it. Full-access roles pick it up on their own.
"""

ALL_PERMISSIONS = {
    # Dashboard
    "dashboard.view":     {"label": "View Dashboard",        "category": "dashboard"},
    "dashboard.view_all": {"label": "View All Dashboards",   "category": "dashboard"},

    # Rooms
    "rooms.view":          {"label": "View Rooms",          "category": "rooms"},
    "rooms.create":        {"label": "Create Rooms",        "category": "rooms"},
    "rooms.update":        {"label": "Update Rooms",        "category": "rooms"},
    "rooms.delete":        {"label": "Delete Rooms",        "category": "rooms"},
    "rooms.update_status": {"label": "Update Room Status",  "category": "rooms"},

    # Guests
    "guests.view":   {"label": "View Guests",   "category": "guests"},
    "guests.create": {"label": "Create Guests", "category": "guests"},
    "guests.update": {"label": "Update Guests", "category": "guests"},
    "guests.delete": {"label": "Delete Guests", "category": "guests"},

    # Reservations
    "reservations.view":   {"label": "View Reservations",   "category": "reservations"},
    "reservations.create": {"label": "Create Reservations", "category": "reservations"},
    "reservations.update": {"label": "Update Reservations", "category": "reservations"},
    "reservations.delete": {"label": "Delete Reservations", "category": "reservations"},
    "reservations.cancel": {"label": "Cancel Reservations", "category": "reservations"},

    # Front desk
    "frontdesk.access":      {"label": "Front Desk Access", "category": "frontdesk"},
    "frontdesk.checkin":     {"label": "Check In Guests",   "category": "frontdesk"},
    "frontdesk.checkout":    {"label": "Check Out Guests",  "category": "frontdesk"},
    "frontdesk.room_change": {"label": "Change Rooms",      "category": "frontdesk"},

    # Billing
    "billing.view":            {"label": "View Billing",     "category": "billing"},
    "billing.create":          {"label": "Create Invoices",  "category": "billing"},
    "billing.update":          {"label": "Update Invoices",  "category": "billing"},
    "billing.process_payment": {"label": "Process Payments", "category": "billing"},
    "billing.refund":          {"label": "Issue Refunds",    "category": "billing"},

    # Analytics
    "analytics.view":        {"label": "View Analytics",        "category": "analytics"},
    "analytics.financial":   {"label": "Financial Analytics",   "category": "analytics"},
    "analytics.operational": {"label": "Operational Analytics", "category": "analytics"},

    # System
    "system.settings": {"label": "System Settings", "category": "system"},
    "users.manage":    {"label": "Manage Users",    "category": "system"},
    "audit.view":      {"label": "View Audit Logs", "category": "system"},
}

ROLES = ["admin", "manager", "receptionist", "accounts", "housekeeping"]
FULL_ACCESS_ROLES = ["admin", "manager"]

# role -> set of granted permission keys
ROLE_PERMISSIONS = {
    "admin": set(ALL_PERMISSIONS),
    "manager": set(ALL_PERMISSIONS),
    # Front desk operations
    "receptionist": {
        "dashboard.view",
        "rooms.view",
        "guests.view", "guests.create", "guests.update",
        "reservations.view", "reservations.create", "reservations.update",
        "frontdesk.access", "frontdesk.checkin", "frontdesk.checkout", "frontdesk.room_change",
        "billing.view",
    },
    # Financial operations
    "accounts": {
        "dashboard.view",
        "rooms.view",
        "guests.view",
        "reservations.view",
        "billing.view", "billing.create", "billing.update",
        "billing.process_payment", "billing.refund",
        "analytics.view", "analytics.financial", "analytics.operational",
    },
    # Room cleaning and maintenance
    "housekeeping": {
        "dashboard.view",
        "rooms.view", "rooms.update_status",
        "reservations.view",
    },
}

# UI route -> roles allowed to open it
ROUTE_ACCESS = {
    "/dashboard":    ["admin", "manager", "receptionist", "accounts", "housekeeping"],
    "/rooms":        ["admin", "manager", "receptionist", "housekeeping"],
    "/guests":       ["admin", "manager", "receptionist"],
    "/reservations": ["admin", "manager", "receptionist", "accounts"],
    "/front-desk":   ["admin", "manager", "receptionist"],
    "/billing":      ["admin", "manager", "receptionist", "accounts"],
    "/analytics":    ["admin", "manager", "accounts"],
    "/settings":     ["admin", "manager"],
    "/users":        ["admin", "manager"],
}
