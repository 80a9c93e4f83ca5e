import os
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from crisis_sim.api.routes import auth, market, trading

# Load environment variables
load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

origins = [
    origin
    for origin in ("http://localhost:3000", os.getenv("FRONTEND_BASE_URL"))
    if origin
]

app = FastAPI()

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/")
def read_root():
    return {"message": "Crisis market simulator is running"}

# ROUTES --------------------------------------------------------------------------------------
app.include_router(auth.router)
app.include_router(market.router)
app.include_router(trading.router)
