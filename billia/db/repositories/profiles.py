"""
Issuer profile and bank account repository functions.

The profile carries billing defaults (numbering, tax, payment terms) that
quotes, invoices and the recurring expander read at creation time.
"""
from __future__ import annotations

import uuid
from typing import Optional, Tuple
from sqlalchemy.orm import Session

from billia.db import models, schemas
from billia.errors import ValidationError
from billia.utils.money import DEFAULT_TAX_RATE, DEFAULT_TAX_ROUNDING, TAX_ROUNDING_MODES
from billia.utils.validation import MAX_LENGTHS, validate_email, validate_length, validate_required

DEFAULT_ACCOUNT_TYPE = "普通"
PAYMENT_TERMS = ("end_of_next_month", "days_after_issue")
IMAGE_KINDS = ("logo", "stamp")

_BANK_FIELDS = ("bank_name", "branch_name", "account_type", "account_number", "account_holder")


def get_profile(db: Session, *, user_id: uuid.UUID) -> Optional[models.UserProfile]:
    return db.query(models.UserProfile).filter(models.UserProfile.user_id == user_id).first()


def get_default_bank_account(db: Session, *, user_id: uuid.UUID) -> Optional[models.BankAccount]:
    return (
        db.query(models.BankAccount)
        .filter(models.BankAccount.user_id == user_id, models.BankAccount.is_default.is_(True))
        .first()
    )


def _new_profile(user_id: uuid.UUID) -> models.UserProfile:
    return models.UserProfile(
        user_id=user_id,
        default_payment_term="end_of_next_month",
        default_payment_terms=30,
        invoice_number_prefix="INV-",
        invoice_number_start=1,
        tax_rate=DEFAULT_TAX_RATE,
        tax_rounding=DEFAULT_TAX_ROUNDING,
        invoice_design="classic",
    )


def tax_settings(profile: Optional[models.UserProfile], fallback_rate: Optional[float] = None) -> Tuple[float, str]:
    """Return (rate_percent, rounding) for new documents."""
    rate = profile.tax_rate if profile and profile.tax_rate is not None else None
    if rate is None:
        rate = fallback_rate if fallback_rate is not None else DEFAULT_TAX_RATE
    rounding = (profile.tax_rounding if profile else None) or DEFAULT_TAX_ROUNDING
    return rate, rounding


def _validate_profile_fields(data: dict) -> None:
    validate_length(data.get("company_name"), MAX_LENGTHS["company_name"], "Company name")
    validate_length(data.get("representative_name"), MAX_LENGTHS["name"], "Representative name")
    validate_length(data.get("address"), MAX_LENGTHS["address"], "Address")
    validate_length(data.get("phone_number"), MAX_LENGTHS["phone_number"], "Phone number")
    validate_length(data.get("invoice_reg_number"), MAX_LENGTHS["invoice_reg_number"], "Invoice registration number")
    if data.get("email"):
        validate_email(data["email"])
    term = data.get("default_payment_term")
    if term is not None and term not in PAYMENT_TERMS:
        raise ValidationError("default_payment_term must be end_of_next_month or days_after_issue")
    if data.get("default_payment_terms") is not None and data["default_payment_terms"] <= 0:
        raise ValidationError("default_payment_terms must be a positive number of days")
    if data.get("invoice_number_start") is not None and data["invoice_number_start"] <= 0:
        raise ValidationError("invoice_number_start must be a positive integer")
    rate = data.get("tax_rate")
    if rate is not None and not 0 <= rate <= 100:
        raise ValidationError("tax_rate must be between 0 and 100")
    rounding = data.get("tax_rounding")
    if rounding is not None and rounding not in TAX_ROUNDING_MODES:
        raise ValidationError("tax_rounding must be floor, ceil or round")
    prefix = data.get("invoice_number_prefix")
    if prefix is not None:
        validate_required(prefix, "Invoice number prefix")
        validate_length(prefix, 20, "Invoice number prefix")


def _upsert_bank_account(db: Session, user_id: uuid.UUID, bank_data: dict) -> Optional[models.BankAccount]:
    account = get_default_bank_account(db, user_id=user_id)
    if account is None:
        if not any(bank_data.get(k) for k in _BANK_FIELDS if k != "account_type"):
            return None
        for key, label in (
            ("bank_name", "Bank name"),
            ("branch_name", "Branch name"),
            ("account_number", "Account number"),
            ("account_holder", "Account holder"),
        ):
            validate_required(bank_data.get(key), label)
        account = models.BankAccount(user_id=user_id, is_default=True)
        db.add(account)
    for key in _BANK_FIELDS:
        value = bank_data.get(key)
        if value is not None:
            setattr(account, key, value.strip())
    if not account.account_type:
        account.account_type = DEFAULT_ACCOUNT_TYPE
    return account


def update_profile(db: Session, *, user_id: uuid.UUID, update: schemas.ProfileUpdate):
    """Apply partial settings and create or refresh the default bank account."""
    data = update.model_dump(exclude_unset=True)
    bank_data = {k: data.pop(k) for k in _BANK_FIELDS if k in data}
    _validate_profile_fields(data)

    profile = get_profile(db, user_id=user_id)
    if profile is None:
        profile = _new_profile(user_id)
        db.add(profile)

    if "default_payment_term" in data and "default_payment_terms" not in data:
        data["default_payment_terms"] = 14 if data["default_payment_term"] == "days_after_issue" else 30
    for key, value in data.items():
        if value is not None:
            setattr(profile, key, value)

    account = _upsert_bank_account(db, user_id, bank_data)
    db.commit()
    db.refresh(profile)
    if account is not None:
        db.refresh(account)
    return profile, account


def set_image_url(db: Session, *, user_id: uuid.UUID, kind: str, url: Optional[str]) -> models.UserProfile:
    if kind not in IMAGE_KINDS:
        raise ValidationError("Image kind must be logo or stamp")
    profile = get_profile(db, user_id=user_id)
    if profile is None:
        profile = _new_profile(user_id)
        db.add(profile)
    setattr(profile, f"{kind}_url", url or None)
    db.commit()
    db.refresh(profile)
    return profile


def complete_onboarding(db: Session, *, user_id: uuid.UUID, payload: schemas.OnboardingRequest):
    company_name = validate_required(payload.company_name, "Company name")
    bank_data = {
        "bank_name": validate_required(payload.bank_name, "Bank name"),
        "branch_name": validate_required(payload.branch_name, "Branch name"),
        "account_number": validate_required(payload.account_number, "Account number"),
        "account_holder": validate_required(payload.account_holder, "Account holder"),
        "account_type": (payload.account_type or "").strip() or DEFAULT_ACCOUNT_TYPE,
    }
    profile_data = {
        "company_name": company_name,
        "representative_name": payload.representative_name,
        "address": payload.address,
        "phone_number": payload.phone_number,
        "invoice_reg_number": payload.invoice_reg_number,
    }
    _validate_profile_fields(profile_data)

    profile = get_profile(db, user_id=user_id)
    if profile is None:
        profile = _new_profile(user_id)
        db.add(profile)
    for key, value in profile_data.items():
        if value is not None:
            setattr(profile, key, value)

    account = _upsert_bank_account(db, user_id, bank_data)
    db.commit()
    db.refresh(profile)
    db.refresh(account)
    return profile, account
