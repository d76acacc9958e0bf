"""Demo dataset (clients, admin user, catalog, documents) for a fresh store."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fieldservice.models.client import ClientAdapter
from fieldservice.models.maintenance import MaintenanceContract
from fieldservice.models.product import Product
from fieldservice.models.quote import Quote
from fieldservice.models.service_order import ServiceOrder
from fieldservice.models.user import User
from fieldservice.services.auth_service import get_password_hash
from fieldservice.storage.store import EntityStore

logger = logging.getLogger(__name__)

ADMIN_USERNAME = "administrador"
ADMIN_PASSWORD = "112233"

CLIENTS = [
    {
        "id": "cli-1", "kind": "legal_entity",
        "razao_social": "Tech Solutions & Inovações Ltda.", "nome_fantasia": "Tech Solutions",
        "cnpj": "12.345.678/0001-99", "inscricao_estadual": "111.222.333.444",
        "address": {"street": "Rua das Inovações", "number": "123", "complement": "Andar 10",
                    "neighborhood": "Centro", "city": "São Paulo", "state": "SP", "zip_code": "01001-000"},
        "contact": {"email": "contato@techsolutions.com", "email_nfe": "nfe@techsolutions.com",
                    "email_billing": "financeiro@techsolutions.com", "phone": "(11) 98765-4321",
                    "main_contact": "Ana", "financial_contact": "Roberto"},
    },
    {
        "id": "cli-2", "kind": "legal_entity",
        "razao_social": "João da Silva MEI", "nome_fantasia": "JS Instalações",
        "cnpj": "23.456.789/0001-11", "inscricao_estadual": "Isento",
        "address": {"street": "Av. Principal", "number": "456", "complement": "Loja B",
                    "neighborhood": "Copacabana", "city": "Rio de Janeiro", "state": "RJ", "zip_code": "22020-002"},
        "contact": {"email": "joao.silva@jsinstalacoes.com", "phone": "(21) 91234-5678",
                    "main_contact": "João da Silva"},
    },
    {
        "id": "cli-3", "kind": "legal_entity",
        "razao_social": "Comércio de Alimentos Oliveira Ltda.", "nome_fantasia": "Supermercado Oliveira",
        "cnpj": "98.765.432/0001-22", "inscricao_estadual": "555.666.777.888",
        "address": {"street": "Praça Central", "number": "789", "neighborhood": "Savassi",
                    "city": "Belo Horizonte", "state": "MG", "zip_code": "30130-141"},
        "contact": {"email": "compras@superoliveira.com", "email_nfe": "fiscal@superoliveira.com",
                    "email_billing": "financeiro@superoliveira.com", "phone": "(31) 95555-4444",
                    "main_contact": "Maria Oliveira"},
    },
    {
        "id": "cli-4", "kind": "natural_person",
        "nome_completo": "Fernanda Costa", "cpf": "123.456.789-00", "rg": "22.333.444-5",
        "birth_date": "1990-05-15",
        "address": {"street": "Rua das Flores", "number": "50", "complement": "Apto 202",
                    "neighborhood": "Jardins", "city": "São Paulo", "state": "SP", "zip_code": "01401-001"},
        "contact": {"email": "fernanda.costa@email.com", "mobile_phone": "(11) 98888-7777"},
    },
]

PRODUCTS = [
    {"id": "prod-1", "sku": "TEL-001", "name": "Telefone IP Intelbras TIP 125i", "category": "Telefonia",
     "unit_of_measure": "unidade", "quantity_in_stock": 25, "cost_price": "250.00", "selling_price": "349.90",
     "supplier": "Intelbras S/A"},
    {"id": "prod-2", "sku": "CAB-001", "name": "Cabo de Rede CAT6 Furukawa", "category": "Redes",
     "unit_of_measure": "metro", "quantity_in_stock": 500, "cost_price": "1.80", "selling_price": "3.50",
     "supplier": "Distribuidora Cabos Mil"},
    {"id": "prod-3", "sku": "CEN-001", "name": "Central Telefônica Intelbras Modulare+", "category": "Telefonia",
     "unit_of_measure": "peça", "quantity_in_stock": 5, "cost_price": "450.00", "selling_price": "629.90",
     "supplier": "Intelbras S/A"},
    {"id": "prod-4", "sku": "SEG-002", "name": "Câmera IP Giga Security GS0246", "category": "Segurança",
     "unit_of_measure": "unidade", "quantity_in_stock": 15, "cost_price": "280.00", "selling_price": "419.99",
     "supplier": "Giga Security"},
    {"id": "prod-5", "sku": "CON-001", "name": "Conector RJ45 CAT6 Blindado", "category": "Redes",
     "unit_of_measure": "caixa", "quantity_in_stock": 10, "cost_price": "80.00", "selling_price": "150.00",
     "supplier": "Distribuidora Cabos Mil"},
]


def _service_orders(now: datetime):
    return [
        {"id": "os-001", "service_order_number": "OS-0001", "client_id": "cli-1",
         "client_name": "Tech Solutions & Inovações Ltda.",
         "request_description": "Servidor principal apresentando lentidão nos últimos dias.",
         "service_type": "Manutenção de Servidor", "location": "Rua das Inovações, 123, São Paulo, SP",
         "scheduled_date": now + timedelta(days=2),
         "notes": "Verificar performance do servidor principal e fazer limpeza de logs.",
         "status": "Pending", "technician": "Carlos"},
        {"id": "os-002", "service_order_number": "OS-0002", "client_id": "cli-2",
         "client_name": "João da Silva MEI",
         "request_description": "Instalação de 4 câmeras na frente da casa.",
         "service_type": "Instalação de Câmeras", "location": "Av. Principal, 456, Rio de Janeiro, RJ",
         "scheduled_date": now, "notes": "Instalar 4 câmeras de segurança na área externa.",
         "status": "InProgress", "technician": "Ana"},
        {"id": "os-003", "service_order_number": "OS-0003", "client_id": "cli-3",
         "client_name": "Comércio de Alimentos Oliveira Ltda.",
         "request_description": "Sinal de Wi-Fi fraco no segundo andar, caindo toda hora.",
         "service_type": "Reparo de Rede Wi-Fi", "location": "Praça Central, 789, Belo Horizonte, MG",
         "scheduled_date": now - timedelta(days=1), "notes": "Sinal de Wi-Fi fraco no segundo andar.",
         "status": "Completed", "technician": "Carlos", "completed_at": now - timedelta(days=1)},
    ]


def _quotes(now: datetime):
    return [
        {"id": "qt-001", "quote_number": "ORC-0001", "client_id": "cli-1",
         "client_name": "Tech Solutions & Inovações Ltda.",
         "quote_date": now - timedelta(days=10), "valid_until": now + timedelta(days=20),
         "items": [
             {"id": "item-1", "description": "Instalação e configuração de 10 câmeras de segurança Intelbras Full HD",
              "quantity": 1, "unit_price": "4500"},
             {"id": "item-2", "description": "Licença anual de software de monitoramento",
              "quantity": 1, "unit_price": "800"},
         ],
         "subtotal": "5300", "discount": "150", "total": "5150",
         "observations": "Infraestrutura de cabos não inclusa.",
         "commercial_conditions": "Garantia de 12 meses para equipamentos. Pagamento em 3x no boleto.",
         "status": "Sent"},
        {"id": "qt-002", "quote_number": "ORC-0002", "client_id": "cli-4", "client_name": "Fernanda Costa",
         "quote_date": now - timedelta(days=2), "valid_until": now + timedelta(days=28),
         "items": [{"id": "item-3", "description": "Consultoria e configuração de rede Wi-Fi Mesh",
                    "quantity": 1, "unit_price": "600"}],
         "subtotal": "600", "discount": "0", "total": "600",
         "observations": "Visita técnica para análise do ambiente e recomendação de equipamentos.",
         "commercial_conditions": "Pagamento via PIX na conclusão do serviço.",
         "status": "Accepted"},
    ]


CONTRACTS = [
    {"id": "man-1", "contract_number": "CT-MAN-001", "client_id": "cli-1",
     "client_name": "Tech Solutions & Inovações Ltda.", "type": "Suporte Remoto",
     "start_date": "2024-01-01T00:00:00Z", "end_date": "2024-12-31T00:00:00Z", "monthly_value": "350.00",
     "scope": "Suporte remoto ilimitado para central telefônica e 10 ramais.", "status": "Active"},
    {"id": "man-2", "contract_number": "CT-MAN-002", "client_id": "cli-3",
     "client_name": "Comércio de Alimentos Oliveira Ltda.", "type": "Suporte Presencial",
     "start_date": "2023-06-01T00:00:00Z", "end_date": "2024-05-31T00:00:00Z", "monthly_value": "800.00",
     "scope": "Uma visita presencial mensal para manutenção preventiva e corretiva.", "status": "Expired"},
]


def seed_demo(store: EntityStore, now: Optional[datetime] = None) -> bool:
    """Charge le jeu de démo si le store est vide ; renvoie False sinon."""
    if len(store.clients) or len(store.users):
        return False
    now = now or datetime.now(timezone.utc)

    with store.writing():
        # insert() ajoute en tête : on insère à l'envers pour garder l'ordre d'origine
        for row in reversed(CLIENTS):
            store.clients.insert(ClientAdapter.validate_python(row))
        store.users.insert(User(
            id="user-admin", name="Administrador do Sistema", username=ADMIN_USERNAME,
            email="admin@fieldservice.com", role="Administrador", status="Active",
        ))
        store.set_secret(ADMIN_USERNAME, get_password_hash(ADMIN_PASSWORD))
        for row in reversed(PRODUCTS):
            store.products.insert(Product.model_validate(row))
        for row in reversed(_service_orders(now)):
            store.service_orders.insert(ServiceOrder.model_validate(row))
        for row in reversed(_quotes(now)):
            store.quotes.insert(Quote.model_validate(row))
        for row in reversed(CONTRACTS):
            store.maintenance_contracts.insert(MaintenanceContract.model_validate(row))

    logger.info("Demo data seeded")
    return True
