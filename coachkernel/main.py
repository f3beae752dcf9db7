import logging

from fastapi import FastAPI

from coachkernel.coaching.router import router as coaching_router

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")

app = FastAPI(title="CoachKernel", version="0.1.0")
app.include_router(coaching_router)


@app.get("/")
async def root() -> dict:
    return {
        "status": "ok",
        "docs": "/docs",
        "health": "/health",
        "coaching": {
            "insights": "/coaching/insights",
            "user_today": "/coaching/users/{user_id}/today",
            "user_ledger": "/coaching/users/{user_id}/ledger",
        },
    }


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}
