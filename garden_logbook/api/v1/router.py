from fastapi import APIRouter

from garden_logbook.api.v1.endpoints import (
    auth,
    calc,
    calendar_notes,
    cron,
    equipment,
    gardens,
    logs,
    notifications,
    plants,
    rooms,
    seeds,
    sensors,
    users,
)

api_router = APIRouter()

api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(gardens.router)
api_router.include_router(gardens.invites_router)
api_router.include_router(rooms.router)
api_router.include_router(plants.router)
api_router.include_router(plants.all_router)
api_router.include_router(equipment.router)
api_router.include_router(logs.router)
api_router.include_router(seeds.router)
api_router.include_router(notifications.router)
api_router.include_router(calendar_notes.router)
api_router.include_router(sensors.router)
api_router.include_router(calc.router)
api_router.include_router(cron.router)
