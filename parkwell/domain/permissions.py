from parkwell.domain.common import RoleName

PERMISSIONS = {
    "manage_own_profile": "Can update own profile",
    "manage_own_vehicles": "Can manage own vehicles",
    "list_own_vehicles": "Can list own vehicles",
    "request_parking_slot": "Can request a slot",
    "manage_own_slot_requests": "Can manage own requests",
    "list_own_slot_requests": "Can list own requests",
    "view_available_parking_slots": "Can view available slots",
    "manage_all_users": "Can manage all users",
    "assign_user_roles": "Can assign roles",
    "manage_parking_slots": "Can manage all slots",
    "manage_all_slot_requests": "Can manage all requests",
    "view_all_parking_slots": "Can view all slots",
    "manage_parkings": "Can create, edit and delete parking facilities",
    "view_all_parkings_details": "Can view all parking facilities",
    "list_selectable_parkings": "Can list parkings for entry selection",
    "record_vehicle_entry": "Can record a vehicle entry",
    "record_vehicle_exit": "Can record a vehicle exit",
    "view_current_parked_vehicles": "Can view currently parked vehicles",
    "view_all_vehicle_entries": "Can view all vehicle entries",
    "view_system_reports": "Can view system reports",
    "view_audit_logs": "Can view audit logs",
}

ROLE_DESCRIPTIONS = {
    RoleName.ADMIN: "Administrator",
    RoleName.PARKING_ATTENDANT: "Parking attendant",
    RoleName.USER: "Regular user",
}

ROLE_PERMISSIONS = {
    RoleName.ADMIN: tuple(PERMISSIONS),
    RoleName.PARKING_ATTENDANT: (
        "manage_own_profile",
        "view_available_parking_slots",
        "view_all_parkings_details",
        "list_selectable_parkings",
        "record_vehicle_entry",
        "record_vehicle_exit",
        "view_current_parked_vehicles",
        "view_all_vehicle_entries",
    ),
    RoleName.USER: (
        "manage_own_profile",
        "manage_own_vehicles",
        "list_own_vehicles",
        "request_parking_slot",
        "manage_own_slot_requests",
        "list_own_slot_requests",
        "view_available_parking_slots",
    ),
}
