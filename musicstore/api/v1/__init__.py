from fastapi import APIRouter

from musicstore.api.v1.auth import router as auth_router
from musicstore.api.v1.music import router as music_router
from musicstore.api.v1.artist import router as artist_router
from musicstore.api.v1.customer import router as customer_router
from musicstore.api.v1.admin import router as admin_router

router = APIRouter()
router.include_router(auth_router)
router.include_router(music_router)
router.include_router(artist_router)
router.include_router(customer_router)
router.include_router(admin_router)
