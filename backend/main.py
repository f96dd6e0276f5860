# backend/main.py
import logging
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

load_dotenv()

from config import settings
from database import init_db

# Routers
from routes.auth import router as auth_router
from routes.shop import router as shop_router
from routes.cart import router as cart_router
from routes.orders import router as orders_router
from routes.reviews import router as reviews_router
from routes.addresses import router as addresses_router
from routes.addresses import api_router as addresses_api_router
from routes.settings import router as settings_router
from routes.vendor import router as vendor_router
from routes.admin import router as admin_router
from routes.logs import router as logs_router
from routes.payments import router as payments_router
from routes.products import router as products_router
from routes.users import router as users_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Initialisation
init_db()

app = FastAPI(title="Jewelry Storefront API", version="1.0.0")

# Uploaded product images
Path(settings.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")

# CORS Configuration: open unless a frontend URL is configured
origins = ["*"]
if settings.FRONTEND_URL:
    origins = ["http://localhost:5173", "http://127.0.0.1:5173", settings.FRONTEND_URL]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Customer, vendor and admin areas
app.include_router(auth_router)
app.include_router(shop_router)
app.include_router(cart_router)
app.include_router(orders_router)
app.include_router(reviews_router)
app.include_router(addresses_router)
app.include_router(settings_router)
app.include_router(vendor_router)
app.include_router(admin_router)
app.include_router(logs_router)

# Resource API
app.include_router(products_router)
app.include_router(payments_router)
app.include_router(addresses_api_router)
app.include_router(users_router)


@app.get("/")
def read_root():
    return {"message": "Jewelry Storefront API is running"}
