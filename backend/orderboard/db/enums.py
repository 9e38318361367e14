import enum


class OrderStatus(str, enum.Enum):
    placed = "placed"
    progress = "progress"
    pickup = "pickup"
    delivered = "delivered"
    delivered_unpaid = "delivered_unpaid"
    failed = "failed"


class BraipStatus(str, enum.Enum):
    pagamento_confirmado = "PAGAMENTO_CONFIRMADO"
    em_andamento = "EM_ANDAMENTO"
    postado = "POSTADO"
    aguardando_retirada = "AGUARDANDO_RETIRADA"
    entregue = "ENTREGUE"
    frustrado = "FRUSTRADO"
    nao_retirado = "NAO_RETIRADO"


class MirrorBackend(str, enum.Enum):
    none = "none"
    database = "database"
    supabase = "supabase"


# Kanban column order and labels
ORDER_STATUS_LABELS = {
    OrderStatus.placed: "Pedido Agendado",
    OrderStatus.progress: "Pedido em Andamento",
    OrderStatus.pickup: "Pedido Aguardando Retirada",
    OrderStatus.delivered: "Pedido Entregue e Pago",
    OrderStatus.delivered_unpaid: "Pedido Entregue e Não Pago",
    OrderStatus.failed: "Pedido Frustrado",
}
