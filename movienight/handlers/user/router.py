# movienight/handlers/user/router.py
from aiogram import Router

from movienight.handlers.user.history import router as history_router
from movienight.handlers.user.nominate import router as nominate_router
from movienight.handlers.user.profile import router as profile_router
from movienight.handlers.user.status import router as status_router
from movienight.handlers.user.vote import router as vote_router
from movienight.handlers.user.watched import router as watched_router
from movienight.handlers.user.whoami import router as whoami_router

router = Router(name="user")

router.include_router(whoami_router)
router.include_router(profile_router)
router.include_router(status_router)
router.include_router(nominate_router)
router.include_router(vote_router)
router.include_router(history_router)
router.include_router(watched_router)
