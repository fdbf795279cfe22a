import os
from dataclasses import dataclass
from typing import Optional, Tuple


LAYOUTS = ("compact", "letterhead")

DEFAULT_NOTES = (
    "Pembayaran bisa melalui : Nomer Rekening : 0091641177 (BCA : Reza Ferdyan A). "
    "|| Qris By WhatsApp : 081334575487 / Driver || Cash"
)
DEFAULT_ADDRESS = (
    "Jl. Trenggono D.21 Peruri Kavling Brawijaya Asri, Linkungan Brawijaya, Kel.",
    "Kebalenan, Kec. Banyuwangi, Kab. Banyuwangi, Prov. Jawa Timur 68417",
)


def _split_lines(value: Optional[str], default: Tuple[str, ...]) -> Tuple[str, ...]:
    if value is None:
        return default
    return tuple(part.strip() for part in value.split("|") if part.strip())


@dataclass(frozen=True)
class Settings:
    company_name: str = "PT. Banana 88 - Anugrah Perkasa"
    company_address: Tuple[str, ...] = DEFAULT_ADDRESS
    company_phone: str = "0813-5892-2199 / 0813-3457-5487"
    logo_small_url: str = "/img-small.png"
    logo_big_url: str = "/img-big.png"
    invoice_number_suffix: str = "BNN"
    due_days: int = 7
    default_notes: str = DEFAULT_NOTES
    default_signature_location: str = "Banyuwangi"
    default_signature_name: str = "Reza Ferdyan A."
    default_layout: str = "compact"
    print_output_dir: Optional[str] = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        try:
            due_days = int(os.getenv("DUE_DAYS", "7"))
        except ValueError:
            raise ValueError("DUE_DAYS must be an integer") from None
        if due_days < 0:
            raise ValueError("DUE_DAYS must not be negative")

        layout = os.getenv("DEFAULT_LAYOUT", "compact").strip().lower()
        if layout not in LAYOUTS:
            raise ValueError(f"DEFAULT_LAYOUT must be one of: {', '.join(LAYOUTS)}")

        defaults = cls()
        return cls(
            company_name=os.getenv("COMPANY_NAME", defaults.company_name),
            company_address=_split_lines(os.getenv("COMPANY_ADDRESS"), defaults.company_address),
            company_phone=os.getenv("COMPANY_PHONE", defaults.company_phone),
            logo_small_url=os.getenv("LOGO_SMALL_URL", defaults.logo_small_url),
            logo_big_url=os.getenv("LOGO_BIG_URL", defaults.logo_big_url),
            invoice_number_suffix=os.getenv("INVOICE_NUMBER_SUFFIX", defaults.invoice_number_suffix),
            due_days=due_days,
            default_notes=os.getenv("DEFAULT_NOTES", defaults.default_notes),
            default_signature_location=os.getenv(
                "DEFAULT_SIGNATURE_LOCATION", defaults.default_signature_location
            ),
            default_signature_name=os.getenv("DEFAULT_SIGNATURE_NAME", defaults.default_signature_name),
            default_layout=layout,
            print_output_dir=os.getenv("PRINT_OUTPUT_DIR") or None,
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
