"""Document type codes from the UNECE document code list (UNTDID 1001)."""

from enum import Enum

DOCUMENT_CODE_NAMESPACE = "unece"
DOCUMENT_CODE_LIST = "DocumentCodeList"
DOCUMENT_CODE_PREFIX = f"{DOCUMENT_CODE_NAMESPACE}:{DOCUMENT_CODE_LIST}#"


class DocumentCode(str, Enum):
    """Codes for the document types that can be stored."""

    ORDER = f"{DOCUMENT_CODE_PREFIX}220"
    PACKING_LIST = f"{DOCUMENT_CODE_PREFIX}271"
    PROFORMA_INVOICE = f"{DOCUMENT_CODE_PREFIX}325"
    COMMERCIAL_INVOICE = f"{DOCUMENT_CODE_PREFIX}380"
    CREDIT_NOTE = f"{DOCUMENT_CODE_PREFIX}381"
    DEBIT_NOTE = f"{DOCUMENT_CODE_PREFIX}383"
    BILL_OF_LADING = f"{DOCUMENT_CODE_PREFIX}705"
    SEA_WAYBILL = f"{DOCUMENT_CODE_PREFIX}710"
    RAIL_CONSIGNMENT_NOTE = f"{DOCUMENT_CODE_PREFIX}720"
    ROAD_CONSIGNMENT_NOTE = f"{DOCUMENT_CODE_PREFIX}730"
    AIR_WAYBILL = f"{DOCUMENT_CODE_PREFIX}740"
    CARGO_MANIFEST = f"{DOCUMENT_CODE_PREFIX}785"
    PHYTOSANITARY_CERTIFICATE = f"{DOCUMENT_CODE_PREFIX}851"
    VETERINARY_CERTIFICATE = f"{DOCUMENT_CODE_PREFIX}853"
    CERTIFICATE_OF_ORIGIN = f"{DOCUMENT_CODE_PREFIX}861"

    @property
    def number(self) -> int:
        """Numeric part of the code, e.g. 705 for a bill of lading."""
        return int(self.value.rsplit("#", 1)[1])

    @classmethod
    def is_known(cls, value: str) -> bool:
        """Check whether a code string belongs to the supported list."""
        return value in cls._value2member_map_
