from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..core.config import get_settings
from ..core.events import EventBus
from ..core.storage import build_storage
from ..services.business_hours_service import AvailabilityConfig

settings = get_settings()
http_bearer = HTTPBearer(auto_error=False)

_availability_config: AvailabilityConfig | None = None


def get_admin_auth(credentials: HTTPAuthorizationCredentials = Depends(http_bearer)):
    if not settings.admin_token:
        return True
    if not credentials or credentials.credentials != settings.admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid admin token")
    return True


def get_availability_config() -> AvailabilityConfig:
    global _availability_config
    if _availability_config is None:
        _availability_config = AvailabilityConfig(build_storage(settings), EventBus(), settings)
    return _availability_config
