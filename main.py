from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging
from dotenv import load_dotenv

from guidance.routes import router as guidance_router

load_dotenv()

logging.basicConfig(level=logging.INFO)
logging.info("App starting")

app = FastAPI(title="CRNA Guidance Engine")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(guidance_router)


@app.get("/health", tags=["meta"], summary="Health check")
def health():
    return {"status": "ok"}
