import uuid
from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict


PaymentTerm = Literal['end_of_next_month', 'days_after_issue']
TaxRounding = Literal['floor', 'ceil', 'round']


class BankAccountFields(BaseModel):
    bank_name: Optional[str] = None
    branch_name: Optional[str] = None
    account_type: Optional[str] = None
    account_number: Optional[str] = None
    account_holder: Optional[str] = None


class BankAccount(BaseModel):
    id: uuid.UUID
    bank_name: str
    branch_name: str
    account_type: str
    account_number: str
    account_holder: str
    is_default: bool
    model_config = ConfigDict(from_attributes=True)


class ProfileUpdate(BankAccountFields):
    company_name: Optional[str] = None
    representative_name: Optional[str] = None
    address: Optional[str] = None
    phone_number: Optional[str] = None
    email: Optional[str] = None
    invoice_reg_number: Optional[str] = None
    default_payment_term: Optional[PaymentTerm] = None
    default_payment_terms: Optional[int] = None
    invoice_number_prefix: Optional[str] = None
    invoice_number_start: Optional[int] = None
    tax_rate: Optional[float] = None
    tax_rounding: Optional[TaxRounding] = None
    invoice_design: Optional[str] = None


class Profile(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    company_name: Optional[str] = None
    representative_name: Optional[str] = None
    address: Optional[str] = None
    phone_number: Optional[str] = None
    email: Optional[str] = None
    invoice_reg_number: Optional[str] = None
    default_payment_term: str
    default_payment_terms: int
    invoice_number_prefix: str
    invoice_number_start: int
    tax_rate: float
    tax_rounding: str
    invoice_design: str
    logo_url: Optional[str] = None
    stamp_url: Optional[str] = None
    updated_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class Settings(BaseModel):
    profile: Optional[Profile] = None
    bank_account: Optional[BankAccount] = None


class OnboardingRequest(BaseModel):
    company_name: str
    representative_name: Optional[str] = None
    address: Optional[str] = None
    phone_number: Optional[str] = None
    invoice_reg_number: Optional[str] = None
    bank_name: str
    branch_name: str
    account_type: Optional[str] = None
    account_number: str
    account_holder: str


class ImageUpdate(BaseModel):
    url: Optional[str] = None
