"""
Rate limiting por IP para los endpoints de autenticación, usando slowapi
"""
from fastapi import Request, HTTPException
from slowapi.util import get_remote_address
from limits import parse

def apply_rate_limit(request: Request, limit: str):
    """
    Aplica rate limiting a un endpoint específico.
    Uso: apply_rate_limit(request, "5/minute")

    Si el limiter no está configurado (por ejemplo, en tests), la función no hace nada.
    """
    limiter = getattr(request.app.state, "limiter", None)
    if limiter is None:
        return

    key = get_remote_address(request)
    item = parse(limit)
    if not limiter.limiter.hit(item, key, request.url.path):
        raise HTTPException(
            status_code=429,
            detail=f"Too many requests. Limit: {limit}. Try again later."
        )
