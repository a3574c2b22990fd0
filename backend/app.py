import os
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv
import logging

# Load environment variables before the services read them
load_dotenv()

# Import Tic-Tac-Toe router
from tic_tac_toe_routes import tic_tac_toe_router

# Set up logging - disable uvicorn access logs
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(message)s',
    datefmt='%H:%M:%S'
)
logger = logging.getLogger(__name__)

# Disable uvicorn access logs
logging.getLogger("uvicorn.access").disabled = True

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost").split(",")
    if origin.strip()
]

# FastAPI app setup
app = FastAPI()

# Enable CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register Tic-Tac-Toe router with FastAPI
app.include_router(tic_tac_toe_router)

logger.info("✅ Tic-Tac-Toe game API endpoints registered")
