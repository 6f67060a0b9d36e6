import enum
from datetime import datetime
from typing import Optional, Tuple

from sqlalchemy import Column, Integer, String, Float, DateTime, Text, ForeignKey, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import relationship

from src.database import Base


class LabelState(str, enum.Enum):
    PENDING = "pending"
    GENERATED = "generated"
    FAILED = "failed"


class DimensionSource(str, enum.Enum):
    PRESET = "preset"
    CUSTOM = "custom"


class OrderShipment(Base):
    """
    Un collo fisico di un ordine.

    Le dimensioni effettive non sono colonne: vengono calcolate in lettura dalla fonte
    autorevole (preset o custom). Le colonne frozen_* contengono l'ultima misura nota e
    vengono scritte solo quando il preset viene eliminato o l'etichetta viene acquistata.
    """
    __tablename__ = "order_shipments"
    __table_args__ = (
        UniqueConstraint('id_order', 'parcel_index', name='uq_order_shipments_order_parcel'),
        CheckConstraint("label_state IN ('pending', 'generated', 'failed')", name='ck_order_shipments_label_state'),
        CheckConstraint("dimension_source IN ('preset', 'custom')", name='ck_order_shipments_dimension_source'),
    )

    id_order_shipment = Column(Integer, primary_key=True, index=True)
    id_order = Column(Integer, ForeignKey('orders.id_order'), index=True, nullable=False)
    parcel_index = Column(Integer, nullable=False, default=0)

    # Fonte dimensioni: associazione debole al preset (nessun vincolo FK)
    dimension_source = Column(String(16), nullable=False, default=DimensionSource.CUSTOM.value)
    id_box_preset = Column(Integer, index=True, nullable=True, default=None)
    box_preset_name = Column(String(128), nullable=True, default=None)
    custom_length_in = Column(Float, nullable=True, default=None)
    custom_width_in = Column(Float, nullable=True, default=None)
    custom_height_in = Column(Float, nullable=True, default=None)
    frozen_length_in = Column(Float, nullable=True, default=None)
    frozen_width_in = Column(Float, nullable=True, default=None)
    frozen_height_in = Column(Float, nullable=True, default=None)
    weight_lb = Column(Float, nullable=True, default=None)

    # Collegamento al provider
    easyship_shipment_id = Column(String(128), nullable=True, default=None, index=True)
    easyship_label_id = Column(String(128), nullable=True, default=None)
    carrier = Column(String(128), nullable=True, default=None)
    service = Column(String(255), nullable=True, default=None)
    tracking_number = Column(String(128), nullable=True, default=None)
    label_url = Column(Text, nullable=True, default=None)

    label_cost_amount_cents = Column(Integer, nullable=True, default=None)
    label_currency = Column(String(3), nullable=False, default="USD")
    label_state = Column(String(16), nullable=False, default=LabelState.PENDING.value)
    quote_selected_id = Column(String(255), nullable=True, default=None)
    error_message = Column(Text, nullable=True, default=None)

    created_at = Column(DateTime, default=datetime.utcnow)
    purchased_at = Column(DateTime, nullable=True, default=None)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    version = Column(Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version}

    order = relationship("Order", back_populates="shipments")
    box_preset = relationship(
        "ShippingBoxPreset",
        primaryjoin="foreign(OrderShipment.id_box_preset) == ShippingBoxPreset.id_shipping_box_preset",
        viewonly=True,
        uselist=False,
    )

    @property
    def effective_dimensions(self) -> Optional[Tuple[float, float, float]]:
        """(L, W, H) in pollici oppure None se la fonte non è completa"""
        frozen = (self.frozen_length_in, self.frozen_width_in, self.frozen_height_in)
        if all(value is not None for value in frozen):
            return frozen
        if self.dimension_source == DimensionSource.PRESET.value:
            preset = self.box_preset
            if preset is None:
                return None
            return (preset.length_in, preset.width_in, preset.height_in)
        custom = (self.custom_length_in, self.custom_width_in, self.custom_height_in)
        if all(value is not None for value in custom):
            return custom
        return None

    @property
    def effective_length_in(self) -> Optional[float]:
        dims = self.effective_dimensions
        return dims[0] if dims else None

    @property
    def effective_width_in(self) -> Optional[float]:
        dims = self.effective_dimensions
        return dims[1] if dims else None

    @property
    def effective_height_in(self) -> Optional[float]:
        dims = self.effective_dimensions
        return dims[2] if dims else None

    @property
    def is_label_complete(self) -> bool:
        return (
            self.label_state == LabelState.GENERATED.value
            and bool(self.easyship_label_id)
            and bool(self.tracking_number)
        )

    @property
    def awaiting_provider(self) -> bool:
        """Acquisto accettato dal provider ma etichetta non ancora emessa"""
        return (
            self.label_state == LabelState.PENDING.value
            and bool(self.easyship_shipment_id)
            and not self.easyship_label_id
        )

    def freeze_dimensions(self) -> None:
        dims = self.effective_dimensions
        if dims:
            self.frozen_length_in, self.frozen_width_in, self.frozen_height_in = dims

    def clear_frozen_dimensions(self) -> None:
        self.frozen_length_in = None
        self.frozen_width_in = None
        self.frozen_height_in = None
