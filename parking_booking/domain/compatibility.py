from parking_booking.domain.common import SlotType, VehicleType


def is_compatible(vehicle_type: VehicleType, slot_type: SlotType) -> bool:
    """The single rule deciding which slot classes a vehicle may occupy.

    A vehicle fits a slot of its own type, any vehicle fits a ``disabled``
    slot, and an ``electric_car`` also fits a plain ``car`` slot.
    """
    vehicle_type = VehicleType(vehicle_type)
    slot_type = SlotType(slot_type)
    if vehicle_type == slot_type:
        return True
    if slot_type == SlotType.DISABLED:
        return True
    return vehicle_type == VehicleType.ELECTRIC_CAR and slot_type == SlotType.CAR


def compatible_slot_types(vehicle_type: VehicleType) -> list[SlotType]:
    return [slot_type for slot_type in SlotType if is_compatible(vehicle_type, slot_type)]
