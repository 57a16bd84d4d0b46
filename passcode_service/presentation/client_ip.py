from fastapi import Request


def _usable(value: str | None) -> bool:
    return bool(value) and value.strip().lower() != "unknown"


def get_client_ip(request: Request) -> str:
    """First X-Forwarded-For hop, then X-Real-IP, then the socket peer."""
    forwarded = request.headers.get("X-Forwarded-For")
    if _usable(forwarded):
        return forwarded.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if _usable(real_ip):
        return real_ip.strip()

    return request.client.host if request.client else "unknown"
