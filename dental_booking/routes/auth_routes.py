from datetime import datetime
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import RedirectResponse, Response
from pydantic import BaseModel
from sqlalchemy.orm import Session

from dental_booking.auth import jwt_handler, saml
from dental_booking.auth.dependencies import get_current_user
from dental_booking.core import config
from dental_booking.database import get_db
from dental_booking.models.user import User
from dental_booking.services import identity

router = APIRouter(tags=["auth"])


class UserResponse(BaseModel):
    id: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    profile_image_url: str | None = None
    role: str
    age: int | None = None
    gender: str | None = None
    address: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class UpdateProfileRequest(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    age: int | None = None
    gender: str | None = None
    address: str | None = None

    class Config:
        # Unknown keys reach the profile service, which names them in its error.
        extra = "allow"


async def prepare_saml_request(request: Request) -> dict:
    form_data = await request.form()
    return saml.build_request_data(
        url=str(request.url),
        host=request.headers.get("host", ""),
        query_params=dict(request.query_params),
        form_data=dict(form_data),
    )


@router.get("/sso/login")
async def sso_login(request: Request):
    auth = saml.init_saml_auth(await prepare_saml_request(request))
    redirect_url = auth.login()
    return RedirectResponse(url=redirect_url)


@router.post("/sso/acs")
async def sso_acs(request: Request, db: Session = Depends(get_db)):
    auth = saml.init_saml_auth(await prepare_saml_request(request))
    auth.process_response()
    errors = auth.get_errors()
    if errors:
        raise HTTPException(status_code=400, detail={"saml_errors": errors})
    if not auth.is_authenticated():
        raise HTTPException(status_code=401, detail="SAML authentication failed")

    principal = saml.extract_principal(auth)
    user = identity.resolve_or_create_user(db, principal)

    token = jwt_handler.create_access_token(subject=user.id)
    if config.FRONTEND_SSO_REDIRECT_URL:
        parsed = urlparse(config.FRONTEND_SSO_REDIRECT_URL)
        query = dict(parse_qsl(parsed.query))
        query.update({"access_token": token, "token_type": "bearer"})
        redirect_url = urlunparse(parsed._replace(query=urlencode(query)))
        return RedirectResponse(url=redirect_url, status_code=302)
    return {"access_token": token, "token_type": "bearer"}


@router.get("/sso/metadata")
def sso_metadata():
    metadata, errors = saml.generate_sp_metadata()
    if errors:
        raise HTTPException(status_code=500, detail={"metadata_errors": errors})
    return Response(content=metadata, media_type="application/xml")


@router.get("/sso/logout")
async def sso_logout(request: Request):
    auth = saml.init_saml_auth(await prepare_saml_request(request))
    redirect_url = auth.logout()
    return RedirectResponse(url=redirect_url)


@router.get("/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return current_user


@router.patch("/me", response_model=UserResponse)
def update_me(
    data: UpdateProfileRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return identity.update_profile(db, current_user, data.model_dump(exclude_unset=True))
