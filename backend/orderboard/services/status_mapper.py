"""
Braip status -> board column mapping.

DELIVERED_UNPAID is never produced here; only a manual edit can put an
order in that column.
"""
from typing import NamedTuple, Union

from orderboard.db.enums import BraipStatus, OrderStatus
from orderboard.services.errors import UnrecognizedVendorStatus


class MappedStatus(NamedTuple):
    status: OrderStatus
    location: str


STATUS_MAP = {
    BraipStatus.pagamento_confirmado: MappedStatus(
        OrderStatus.placed, "Pagamento confirmado - Aguardando processamento"
    ),
    BraipStatus.em_andamento: MappedStatus(
        OrderStatus.progress, "Pedido em andamento - Preparando envio"
    ),
    BraipStatus.postado: MappedStatus(OrderStatus.pickup, "Postado nos Correios"),
    BraipStatus.aguardando_retirada: MappedStatus(
        OrderStatus.pickup, "Disponível para retirada na agência"
    ),
    BraipStatus.entregue: MappedStatus(OrderStatus.delivered, "Entregue ao destinatário"),
    BraipStatus.frustrado: MappedStatus(OrderStatus.failed, "Entrega frustrada"),
    BraipStatus.nao_retirado: MappedStatus(
        OrderStatus.failed, "Não retirado - Devolvido ao remetente"
    ),
}


def parse_vendor_status(value: Union[str, BraipStatus]) -> BraipStatus:
    """Coerce a raw code to BraipStatus or raise UnrecognizedVendorStatus."""
    if isinstance(value, BraipStatus):
        return value
    try:
        return BraipStatus(value)
    except ValueError:
        raise UnrecognizedVendorStatus(value) from None


def map_vendor_status(value: Union[str, BraipStatus]) -> MappedStatus:
    """Return the (status, location) pair for a Braip status code."""
    return STATUS_MAP[parse_vendor_status(value)]
