from garden_logbook.models.user import User
from garden_logbook.models.garden import Garden, GardenInvite, GardenLogVisibility, GardenMember, Room, Zone
from garden_logbook.models.plant import Plant, Seed
from garden_logbook.models.equipment import Equipment, MaintenanceTask
from garden_logbook.models.logs import ApiRequestLog, CalendarNote, Log, Notification, PipelineRun
from garden_logbook.models.sensor import GoveeDevice, GoveeReading

__all__ = [
    "User",
    "Garden",
    "GardenMember",
    "GardenInvite",
    "GardenLogVisibility",
    "Room",
    "Zone",
    "Plant",
    "Seed",
    "Equipment",
    "MaintenanceTask",
    "Log",
    "CalendarNote",
    "Notification",
    "PipelineRun",
    "ApiRequestLog",
    "GoveeDevice",
    "GoveeReading",
]
