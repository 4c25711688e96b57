import uuid
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from pydantic import BaseModel
from app.core.config import settings

http_bearer = HTTPBearer(auto_error=False)

class Principal(BaseModel):
    user_id: uuid.UUID
    name: str
    roles: list[str] = []
    scopes: list[str] = []

    @property
    def actor(self) -> str:
        """Value stamped into created_by/updated_by."""
        return self.name

def _decode_token(token: str) -> dict:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG], audience=settings.REQUIRED_AUDIENCE)
        return payload
    except JWTError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=f"Invalid token: {e}")

def issue_token(user_id: uuid.UUID, name: str, scopes: list[str], roles: list[str] | None = None) -> str:
    claims = {"sub": str(user_id), "name": name, "scopes": scopes, "roles": roles or []}
    if settings.REQUIRED_AUDIENCE:
        claims["aud"] = settings.REQUIRED_AUDIENCE
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALG)

async def get_principal(creds: HTTPAuthorizationCredentials | None = Depends(http_bearer)) -> Principal:
    # In local/dev, allow missing token and act as the local admin
    if creds is None and settings.ENV == "local":
        return Principal(user_id=uuid.UUID(int=0), name="SYSTEM", roles=["admin"], scopes=["*"])
    if creds is None:
        raise HTTPException(status_code=401, detail="Missing token")

    data = _decode_token(creds.credentials)
    try:
        user_id = uuid.UUID(str(data.get("sub") or data.get("user_id")))
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid token: bad subject")
    name = str(data.get("name") or data.get("email") or user_id)
    roles = data.get("roles", [])
    scopes = data.get("scopes", [])
    return Principal(user_id=user_id, name=name, roles=roles, scopes=scopes)

def require_scopes(*needed: str):
    def dep(principal: Principal = Depends(get_principal)) -> Principal:
        if "*" in principal.scopes:
            return principal
        if not set(needed).issubset(set(principal.scopes)):
            raise HTTPException(status_code=403, detail="Insufficient scopes")
        return principal
    return dep
