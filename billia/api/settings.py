"""
Profile, settings and onboarding endpoints.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from billia.api.deps import get_current_user, get_current_user_context
from billia.db import schemas
from billia.db.database import get_db
from billia.db.repositories import profiles as profile_repo
from billia.utils.feature_flags import get_feature_flags

router = APIRouter(tags=["settings"])


def _settings_payload(profile, account) -> dict:
    return {
        "profile": schemas.Profile.model_validate(profile) if profile else None,
        "bank_account": schemas.BankAccount.model_validate(account) if account else None,
    }


@router.get("/me")
def get_me_endpoint(
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, current_user = user_context
    profile = profile_repo.get_profile(db, user_id=user.id)
    account = profile_repo.get_default_bank_account(db, user_id=user.id)
    return {
        **current_user,
        "onboarding_complete": bool(profile and profile.company_name and account),
        "feature_flags": get_feature_flags(),
    }


@router.get("/settings", response_model=schemas.Settings)
def get_settings_endpoint(db: Session = Depends(get_db), user=Depends(get_current_user)):
    profile = profile_repo.get_profile(db, user_id=user.id)
    account = profile_repo.get_default_bank_account(db, user_id=user.id)
    return _settings_payload(profile, account)


@router.put("/settings", response_model=schemas.Settings)
def update_settings_endpoint(
    update: schemas.ProfileUpdate,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    profile, account = profile_repo.update_profile(db, user_id=user.id, update=update)
    if account is None:
        account = profile_repo.get_default_bank_account(db, user_id=user.id)
    return _settings_payload(profile, account)


@router.put("/settings/images/{kind}", response_model=schemas.Profile)
def set_image_endpoint(
    kind: str,
    body: schemas.ImageUpdate,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return profile_repo.set_image_url(db, user_id=user.id, kind=kind, url=body.url)


@router.post("/onboarding", response_model=schemas.Settings, status_code=status.HTTP_201_CREATED)
def onboarding_endpoint(
    payload: schemas.OnboardingRequest,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    profile, account = profile_repo.complete_onboarding(db, user_id=user.id, payload=payload)
    return _settings_payload(profile, account)
