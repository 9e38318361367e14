#!/usr/bin/env python
"""Post a fake Braip status event to a running server.
Usage: python scripts/send_braip_webhook.py <purchase_id> <STATUS> [buyer_name] [base_url]
"""
import sys

import httpx

STATUSES = (
    "PAGAMENTO_CONFIRMADO",
    "EM_ANDAMENTO",
    "POSTADO",
    "AGUARDANDO_RETIRADA",
    "ENTREGUE",
    "FRUSTRADO",
    "NAO_RETIRADO",
)


def main():
    if len(sys.argv) < 3:
        print(__doc__)
        print("Statuses:", ", ".join(STATUSES))
        sys.exit(2)

    purchase_id = sys.argv[1]
    status = sys.argv[2]
    buyer_name = sys.argv[3] if len(sys.argv) > 3 else "Cliente Teste"
    base_url = sys.argv[4] if len(sys.argv) > 4 else "http://127.0.0.1:8000"

    payload = {
        "purchase_id": purchase_id,
        "buyer_name": buyer_name,
        "status": status,
        "product_title": "Produto Teste",
    }
    r = httpx.post(f"{base_url.rstrip('/')}/api/webhooks/braip", json=payload, timeout=10)
    print("WEBHOOK", r.status_code)
    print(r.text)


if __name__ == "__main__":
    main()
