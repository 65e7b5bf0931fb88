# app/deps.py

from fastapi import HTTPException

def require_provider(user: dict):
    if not user["provider"]:
        raise HTTPException(status_code=403, detail="Only providers can access notifications")
