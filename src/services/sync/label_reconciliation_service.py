"""
Servizio di riconciliazione periodica delle etichette in attesa del vettore.

Ogni collo pending con id spedizione del provider ma senza etichetta ha un proprio
orario di prossimo tentativo: backoff esponenziale (base, tetto) moltiplicato per
un fattore casuale in [1 - jitter, 1 + jitter]. Lo schedule viene azzerato quando
il collo lascia lo stato pending.
"""
import asyncio
import logging
import random
import time
from typing import Callable, Dict, Iterable, Optional

from sqlalchemy.orm import Session

from src.core.container_config import get_configured_container
from src.core.exceptions import BaseApplicationException, InvalidStateException, ProviderUnavailableException
from src.core.settings import ShippingLabelSettings, get_shipping_label_settings
from src.repository.order_shipment_repository import OrderShipmentRepository
from src.services.ecommerce.shipments.carrier_gateway import ICarrierGateway
from src.services.interfaces.label_status_service_interface import ILabelStatusService

logger = logging.getLogger(__name__)

ERROR_RETRY_SECONDS = 300  # 5 minuti


def compute_backoff_delay(
    attempts: int,
    base_interval: float,
    max_interval: float,
    jitter: float,
    rng: Callable[[], float] = random.random
) -> float:
    """
    Ritardo prima del prossimo tentativo.

    Args:
        attempts: tentativi già falliti (0 = primo tentativo)
        base_interval: intervallo iniziale in secondi
        max_interval: tetto del backoff in secondi
        jitter: ampiezza relativa del fattore casuale (0.2 = +/-20%)
        rng: sorgente casuale in [0, 1)

    Returns:
        Secondi di attesa
    """
    delay = min(max_interval, base_interval * (2 ** max(attempts, 0)))
    jitter = min(max(jitter, 0.0), 1.0)
    factor = 1 + jitter * (2 * rng() - 1)
    return delay * factor


class LabelReconciliationScheduler:
    """Orari di prossimo tentativo per collo (solo in memoria)"""

    def __init__(
        self,
        settings: Optional[ShippingLabelSettings] = None,
        clock: Callable[[], float] = time.monotonic,
        rng: Callable[[], float] = random.random
    ):
        self.settings = settings or get_shipping_label_settings()
        self._clock = clock
        self._rng = rng
        self._attempts: Dict[int, int] = {}
        self._next_attempt_at: Dict[int, float] = {}

    def is_due(self, shipment_id: int) -> bool:
        return self._clock() >= self._next_attempt_at.get(shipment_id, 0.0)

    def record_attempt(self, shipment_id: int) -> float:
        """Il collo è ancora pending: pianifica il prossimo tentativo"""
        attempts = self._attempts.get(shipment_id, 0)
        delay = compute_backoff_delay(
            attempts,
            self.settings.label_reconciliation_base_interval,
            self.settings.label_reconciliation_max_interval,
            self.settings.label_reconciliation_jitter,
            self._rng,
        )
        self._attempts[shipment_id] = attempts + 1
        self._next_attempt_at[shipment_id] = self._clock() + delay
        return delay

    def reset(self, shipment_id: int) -> None:
        self._attempts.pop(shipment_id, None)
        self._next_attempt_at.pop(shipment_id, None)

    def prune(self, active_ids: Iterable[int]) -> None:
        """Dimentica i colli che non sono più in attesa"""
        active = set(active_ids)
        for shipment_id in list(self._next_attempt_at.keys()):
            if shipment_id not in active:
                self.reset(shipment_id)

    def attempts(self, shipment_id: int) -> int:
        return self._attempts.get(shipment_id, 0)


_scheduler: Optional[LabelReconciliationScheduler] = None


def get_reconciliation_scheduler() -> LabelReconciliationScheduler:
    global _scheduler
    if _scheduler is None:
        _scheduler = LabelReconciliationScheduler()
    return _scheduler


async def poll_label_status_periodic(
    db: Session,
    carrier_gateway: Optional[ICarrierGateway] = None,
    scheduler: Optional[LabelReconciliationScheduler] = None
) -> int:
    """
    Un giro di riconciliazione.

    Args:
        db: Database session
        carrier_gateway: gateway del vettore (default: quello registrato nel container)
        scheduler: schedule dei tentativi (default: quello di processo)

    Returns:
        Numero di colli che hanno lasciato lo stato pending
    """
    scheduler = scheduler or get_reconciliation_scheduler()
    settings = scheduler.settings
    container = get_configured_container()
    gateway = carrier_gateway or container.resolve(ICarrierGateway)

    shipments = OrderShipmentRepository(db).get_awaiting_provider(settings.label_reconciliation_batch_size)
    scheduler.prune(shipment.id_order_shipment for shipment in shipments)
    if not shipments:
        logger.debug("No labels awaiting provider")
        return 0

    label_status_service = container.resolve_with_session(ILabelStatusService, db, carrier_gateway=gateway)
    resolved = 0
    for shipment in shipments:
        shipment_id = shipment.id_order_shipment
        if not scheduler.is_due(shipment_id):
            continue
        try:
            left_pending = await label_status_service.reconcile_shipment(shipment)
        except InvalidStateException:
            # Acquisto o refresh manuale in corso sullo stesso collo
            logger.debug(f"Shipment {shipment_id} busy, skipping reconciliation")
            continue
        except ProviderUnavailableException as e:
            delay = scheduler.record_attempt(shipment_id)
            logger.warning(f"Label status unavailable for shipment {shipment_id}: {e.message}, retry in {delay:.0f}s")
            continue
        except BaseApplicationException as e:
            delay = scheduler.record_attempt(shipment_id)
            logger.error(f"Error reconciling shipment {shipment_id}: {e.message}, retry in {delay:.0f}s")
            continue

        if left_pending:
            scheduler.reset(shipment_id)
            resolved += 1
        else:
            delay = scheduler.record_attempt(shipment_id)
            logger.info(f"Shipment {shipment_id} still pending, next check in {delay:.0f}s")

    if resolved:
        logger.info(f"Label reconciliation resolved {resolved} shipment(s)")
    return resolved


async def run_label_reconciliation_task(session_factory: Callable[[], Session]):
    """
    Task periodica in loop infinito avviata dal lifespan dell'app.

    Ogni giro apre una sessione dedicata; l'intervallo tra i giri è
    LABEL_RECONCILIATION_BASE_INTERVAL (lo schedule per collo decide chi interrogare).
    """
    settings = get_shipping_label_settings()
    logger.info("Starting label reconciliation periodic task")

    while True:
        try:
            await asyncio.sleep(settings.label_reconciliation_base_interval)
            db = session_factory()
            try:
                await poll_label_status_periodic(db)
            finally:
                db.close()
        except asyncio.CancelledError:
            logger.info("Label reconciliation task stopped")
            raise
        except Exception as e:
            logger.error(f"Error in label reconciliation task: {str(e)}", exc_info=True)
            await asyncio.sleep(ERROR_RETRY_SECONDS)
