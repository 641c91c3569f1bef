from aiogram import Router

from movienight.handlers.admin.results import router as results_router

router = Router(name="admin")

router.include_router(results_router)
