from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from realty.database import get_db
from realty.dependencies import get_admin_user
from realty.models.user import User
from realty.schemas.site_setting import SiteSettingOut, SiteSettingUpdate
from realty.schemas.common import SuccessResponse, success_response
from realty.services.site_setting_service import site_setting_service

router = APIRouter(prefix="/settings")


@router.get("", summary="Public site settings (site name, contact details, last updated)")
def get_settings(db: Session = Depends(get_db)):
    return success_response("Settings retrieved", site_setting_service.public_settings(db))


@router.put("/{key}", summary="Create or update a site setting (Admin)",
            response_model=SuccessResponse[SiteSettingOut])
def upsert_setting(
    key:          str,
    body:         SiteSettingUpdate,
    db:           Session = Depends(get_db),
    current_user: User    = Depends(get_admin_user),
):
    return success_response("Setting updated", site_setting_service.upsert_setting(db, key, body, current_user))
