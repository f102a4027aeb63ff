"""Plain-text tickets and bills handed out as downloads."""
from datetime import datetime
from typing import Optional

from parkwell.config.settings_env import settings
from parkwell.domain.entities import SlotRequest, VehicleEntry

RULE = "=" * 40


def _fmt_time(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S UTC") if value else "-"


def _document(title: str, lines) -> str:
    body = [RULE, settings.APP_NAME.center(40), title.center(40), RULE]
    body.extend(f"{label:<16}{value}" for label, value in lines)
    body.append(RULE)
    return "\n".join(body) + "\n"


def render_entry_ticket(entry: VehicleEntry) -> str:
    parking = entry.parking
    return _document("ENTRY TICKET", [
        ("Ticket:", entry.ticket_number),
        ("Plate number:", entry.plate_number),
        ("Parking:", f"{parking.name} ({parking.code})" if parking else entry.parking_id),
        ("Location:", (parking.location if parking else None) or "-"),
        ("Rate per hour:", parking.charge_per_hour if parking else "-"),
        ("Entry time:", _fmt_time(entry.entry_time)),
        ("Recorded by:", entry.recorded_by_name or "-"),
    ])


def render_exit_bill(entry: VehicleEntry) -> str:
    parking = entry.parking
    return _document("EXIT BILL", [
        ("Ticket:", entry.ticket_number),
        ("Plate number:", entry.plate_number),
        ("Parking:", f"{parking.name} ({parking.code})" if parking else entry.parking_id),
        ("Entry time:", _fmt_time(entry.entry_time)),
        ("Exit time:", _fmt_time(entry.exit_time)),
        ("Duration:", f"{entry.calculated_duration_minutes} min"),
        ("Rate per hour:", parking.charge_per_hour if parking else "-"),
        ("Amount due:", entry.charged_amount),
    ])


def render_slot_request_ticket(slot_request: SlotRequest) -> str:
    user = slot_request.user
    vehicle = slot_request.vehicle
    slot = slot_request.parking_slot
    return _document("PARKING SLOT TICKET", [
        ("Request:", f"#{slot_request.id}"),
        ("Name:", user.full_name if user else "-"),
        ("E-mail:", user.email if user else "-"),
        ("Plate number:", vehicle.plate_number if vehicle else "-"),
        ("Slot:", slot.slot_number if slot else "-"),
        ("Slot location:", slot.location.value if slot and slot.location else "-"),
        ("Duration:", f"{slot_request.expected_duration_hours} hour(s)"),
        ("Cost:", slot_request.calculated_cost),
        ("Approved at:", _fmt_time(slot_request.resolved_at)),
    ])
