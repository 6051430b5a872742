"""User settings schemas; defaults mirror what a fresh account sees."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ProfileSettings(BaseModel):
    first_name: str = ""
    company: str = ""
    address: str = ""
    phone: str = ""
    email: str = ""
    website: str = ""
    bank_rib: str = ""
    bank_name: str = ""
    logo_preview: Optional[str] = None


class InvoiceSettings(BaseModel):
    invoice_number: bool = True
    due_date: bool = True
    currency: bool = True
    discount: bool = True
    tax: bool = True
    notes: bool = True
    invoice_number_prefix: str = "INV"
    invoice_number_start: str = "001"
    due_date_type: str = "custom"
    due_date_days: str = "30"
    vat_number: str = ""
    tax_amount: str = "0"
    tax_method: str = "default"
    currency_type: str = "EUR"
    separator: str = "comma-dot"
    sign_placement: str = "before"
    decimals: str = "2"
    discount_type: str = "percentage"
    discount_amount: str = "0"
    default_notes: str = ""
    template: str = "Minimal"
    date_format: str = "dd/MM/yyyy"


class GeneralSettings(BaseModel):
    sound: str = "Default Values"
    language: str = "English"
    mute: bool = False
    open_pdf_after_save: bool = True


class SettingsUpdate(BaseModel):
    profile_settings: Optional[ProfileSettings] = None
    invoice_settings: Optional[InvoiceSettings] = None
    general_settings: Optional[GeneralSettings] = None


class SettingsRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    profile_settings: ProfileSettings
    invoice_settings: InvoiceSettings
    general_settings: GeneralSettings
    updated_at: Optional[datetime] = None
