"""
Sistema di gestione errori centralizzato per spedizioni ed etichette
"""
from abc import ABC
from typing import Optional, Dict, Any, List
from enum import Enum

class ErrorCode(Enum):
    """Codici errore standardizzati"""
    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    REQUIRED_FIELD_MISSING = "REQUIRED_FIELD_MISSING"
    SHIP_FROM_INCOMPLETE = "SHIP_FROM_INCOMPLETE"
    DESTINATION_INCOMPLETE = "DESTINATION_INCOMPLETE"
    DESTINATION_PHONE_REQUIRED = "DESTINATION_PHONE_REQUIRED"
    PARCEL_INCOMPLETE = "PARCEL_INCOMPLETE"

    # Business logic errors
    BUSINESS_RULE_VIOLATION = "BUSINESS_RULE_VIOLATION"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    INVALID_STATE = "INVALID_STATE"
    SHIPMENT_ALREADY_PURCHASED = "SHIPMENT_ALREADY_PURCHASED"
    LABEL_PENDING_USE_REFRESH = "LABEL_PENDING_USE_REFRESH"
    PURCHASE_IN_PROGRESS = "PURCHASE_IN_PROGRESS"
    CONCURRENT_MODIFICATION = "CONCURRENT_MODIFICATION"

    # Quote errors
    NO_QUOTE_SELECTED = "NO_QUOTE_SELECTED"
    QUOTE_NOT_FOUND = "QUOTE_NOT_FOUND"
    NO_RATES = "NO_RATES"

    # Not found errors
    ENTITY_NOT_FOUND = "ENTITY_NOT_FOUND"

    # Infrastructure / provider errors
    DATABASE_ERROR = "DATABASE_ERROR"
    PROVIDER_REJECTED = "PROVIDER_REJECTED"
    PROVIDER_UNAVAILABLE = "PROVIDER_UNAVAILABLE"

class BaseApplicationException(Exception, ABC):
    """Base exception per l'applicazione"""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 400
    ):
        self.message = message
        self.error_code = error_code.value
        self.details = details or {}
        self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Converte l'eccezione in dizionario per la risposta API"""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "status_code": self.status_code
        }

class DomainException(BaseApplicationException):
    """Eccezioni del dominio business"""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.BUSINESS_RULE_VIOLATION,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 400
    ):
        super().__init__(message, error_code, details, status_code)

class ValidationException(DomainException):
    """Errori di validazione (campi mancanti o non validi, mai ritentati in automatico)"""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, error_code, details)

class InvalidStateException(DomainException):
    """Operazione non permessa dato il label_state corrente"""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INVALID_STATE,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, error_code, details, 409)

class NoQuoteSelectedException(DomainException):
    """Acquisto richiesto senza quotazione selezionata né refresh"""

    def __init__(self, message: str = "No quote selected. Fetch quotes or pass refresh=true.", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCode.NO_QUOTE_SELECTED, details, 400)

class StaleQuoteException(DomainException):
    """La quotazione selezionata non è presente nella cache valida"""

    def __init__(self, quote_id: str, details: Optional[Dict[str, Any]] = None):
        error_details = details or {}
        error_details["quote_selected_id"] = quote_id
        super().__init__(
            f"Quote '{quote_id}' is no longer available. Refresh quotes and select again.",
            ErrorCode.QUOTE_NOT_FOUND,
            error_details,
            409
        )

class ProviderRejectedException(DomainException):
    """Rifiuto definitivo lato vettore: terminale, non ritentabile"""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.PROVIDER_REJECTED,
        details: Optional[Dict[str, Any]] = None
    ):
        error_details = details or {}
        error_details.setdefault("retryable", False)
        super().__init__(message, error_code, error_details, 422)

class ProviderUnavailableException(BaseApplicationException):
    """Errore di trasporto o provider non raggiungibile: ritentabile, non modifica lo stato"""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        error_details = details or {}
        error_details["retryable"] = True
        super().__init__(message, ErrorCode.PROVIDER_UNAVAILABLE, error_details, 503)

class ConcurrentModificationException(BaseApplicationException):
    """Aggiornamento concorrente rilevato dal versioning ottimistico"""

    def __init__(self, entity_type: str, entity_id: Any):
        super().__init__(
            f"{entity_type} with id '{entity_id}' was modified concurrently, retry the operation",
            ErrorCode.CONCURRENT_MODIFICATION,
            {"entity_type": entity_type, "entity_id": entity_id},
            409
        )

class NotFoundException(BaseApplicationException):
    """Entità non trovata"""

    def __init__(
        self,
        entity_type: str,
        entity_id: Any = None,
        details: Optional[Dict[str, Any]] = None
    ):
        if entity_id is not None:
            message = f"{entity_type} with id '{entity_id}' not found"
        else:
            message = f"{entity_type} not found"

        error_details = details or {}
        if entity_id is not None:
            error_details["entity_id"] = entity_id
        error_details["entity_type"] = entity_type

        super().__init__(
            message,
            ErrorCode.ENTITY_NOT_FOUND,
            error_details,
            404
        )

class InfrastructureException(BaseApplicationException):
    """Errori di infrastruttura"""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.DATABASE_ERROR,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, error_code, details, 500)

class AlreadyExistsError(BaseApplicationException):
    """Errore quando un'entità esiste già"""

    def __init__(
        self,
        message: str,
        entity_type: str = None,
        entity_id: Any = None,
        details: Optional[Dict[str, Any]] = None
    ):
        error_details = details or {}
        if entity_type:
            error_details["entity_type"] = entity_type
        if entity_id is not None:
            error_details["entity_id"] = entity_id

        super().__init__(
            message,
            ErrorCode.ALREADY_EXISTS,
            error_details,
            409
        )

# Factory per creare eccezioni specifiche
class ExceptionFactory:
    """Factory per creare eccezioni specifiche"""

    @staticmethod
    def order_not_found(order_id: int) -> NotFoundException:
        return NotFoundException("Order", order_id)

    @staticmethod
    def shipment_not_found(shipment_id: int) -> NotFoundException:
        return NotFoundException("OrderShipment", shipment_id)

    @staticmethod
    def box_preset_not_found(preset_id: int) -> NotFoundException:
        return NotFoundException("ShippingBoxPreset", preset_id)

    @staticmethod
    def ship_from_incomplete(missing: List[str]) -> ValidationException:
        return ValidationException(
            "Ship-from settings are incomplete.",
            ErrorCode.SHIP_FROM_INCOMPLETE,
            {"missing": missing}
        )

    @staticmethod
    def destination_incomplete(missing: List[str]) -> ValidationException:
        return ValidationException(
            "Order shipping destination is incomplete.",
            ErrorCode.DESTINATION_INCOMPLETE,
            {"missing": missing}
        )

    @staticmethod
    def destination_phone_required() -> ValidationException:
        return ValidationException(
            "Missing destination phone number (required for label purchase).",
            ErrorCode.DESTINATION_PHONE_REQUIRED
        )

    @staticmethod
    def parcel_incomplete(shipment_id: int = None) -> ValidationException:
        return ValidationException(
            "Shipment is missing box dimensions or weight. Please fill them in before quoting or buying a label.",
            ErrorCode.PARCEL_INCOMPLETE,
            {"shipment_id": shipment_id} if shipment_id is not None else None
        )

    @staticmethod
    def shipment_already_purchased(shipment_id: int) -> InvalidStateException:
        return InvalidStateException(
            "Label already purchased for this shipment.",
            ErrorCode.SHIPMENT_ALREADY_PURCHASED,
            {"shipment_id": shipment_id}
        )

    @staticmethod
    def label_pending_use_refresh(shipment_id: int) -> InvalidStateException:
        return InvalidStateException(
            "Label purchase is pending. Use refresh instead of buying again.",
            ErrorCode.LABEL_PENDING_USE_REFRESH,
            {"shipment_id": shipment_id}
        )

    @staticmethod
    def purchase_in_progress(shipment_id: int) -> InvalidStateException:
        return InvalidStateException(
            "A label purchase or refresh is already in progress for this shipment.",
            ErrorCode.PURCHASE_IN_PROGRESS,
            {"shipment_id": shipment_id}
        )

    @staticmethod
    def shipment_locked(shipment_id: int, action: str) -> InvalidStateException:
        return InvalidStateException(
            f"Cannot {action} a shipment whose label has been generated.",
            ErrorCode.INVALID_STATE,
            {"shipment_id": shipment_id, "label_state": "generated"}
        )
