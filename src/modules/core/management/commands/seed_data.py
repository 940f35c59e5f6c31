from __future__ import annotations

import random
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from django.core.management.base import BaseCommand

from modules.core.permissions import Role
from modules.core.repositories.sellers import SellerDjangoRepository
from modules.customers.models import Customer
from modules.customers.repositories.django_repository import CustomerDjangoRepository
from modules.orders.constants import OrderStatus
from modules.orders.dtos import CreateOrderDTO, CreateOrderLineDTO
from modules.orders.line_services import OrderLineService
from modules.orders.models import Order
from modules.orders.repositories.django_repository import (
    OrderDjangoRepository,
    OrderLineDjangoRepository,
)
from modules.orders.services import OrderService
from modules.products.models import Product, ProductStatus
from modules.products.repositories.django_repository import ProductDjangoRepository

# Forward path used to spread seeded orders across the lifecycle.
LIFECYCLE = [
    OrderStatus.ADDING_PRODUCTS,
    OrderStatus.AVAILABLE_FOR_PAYMENT,
    OrderStatus.PAID,
    OrderStatus.DELIVERED,
    OrderStatus.CLOSED,
]


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def add_arguments(self, parser):
        parser.add_argument("--orders", type=int, default=30)

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        users_created = self._seed_users()
        customers = self._seed_customers()
        products = self._seed_products()
        orders_created = self._seed_orders(customers, products, options["orders"])

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={users_created}, "
                f"customers={len(customers)}, "
                f"products={len(products)}, "
                f"orders={orders_created}"
            )
        )

    def _seed_users(self) -> int:
        User = get_user_model()
        admin_group, _ = Group.objects.get_or_create(name=Role.ADMIN)
        seller_group, _ = Group.objects.get_or_create(name=Role.SELLER)

        created = 0
        if not User.objects.filter(username="admin").exists():
            admin = User.objects.create_superuser("admin", password="admin123")
            admin.groups.add(admin_group)
            created += 1
        for username in ("seller1", "seller2"):
            if not User.objects.filter(username=username).exists():
                seller = User.objects.create_user(username, password=f"{username}123")
                seller.groups.add(seller_group)
                created += 1
        if not User.objects.filter(username="viewer").exists():
            User.objects.create_user("viewer", password="viewer123")
            created += 1
        return created

    def _seed_customers(self) -> list[Customer]:
        self.stdout.write("Creating customers...")
        customers: list[Customer] = []
        seed_customers = [
            ("Ana Souza", "1010101010", "ana@example.com"),
            ("Bruno Lima", "2020202020", "bruno@example.com"),
            ("Carla Mendes", "3030303030", "carla@example.com"),
            ("Daniel Costa", "4040404040", "daniel@example.com"),
            ("Elena Ruiz", "5050505050", "elena@example.com"),
            ("Felipe Ortiz", "6060606060", "felipe@example.com"),
        ]
        for name, document, email in seed_customers:
            customer, _ = Customer.objects.get_or_create(
                document=document,
                defaults={
                    "name": name,
                    "email": email,
                    "phone": "555-0100",
                    "address": "Main Street 100",
                },
            )
            customers.append(customer)
        self.stdout.write(self.style.SUCCESS("Creating customers... Done!"))
        return customers

    def _seed_products(self) -> list[Product]:
        self.stdout.write("Creating products...")
        products: list[Product] = []
        catalog = [
            ("LAP-001", "Laptop 14\"", "Laptops", "Lenovo", Decimal("3999.00"), 24),
            ("LAP-002", "Laptop 16\"", "Laptops", "Dell", Decimal("5499.00"), 24),
            ("MON-001", "Monitor 27\"", "Monitors", "LG", Decimal("1299.90"), 12),
            ("KEY-001", "Mechanical Keyboard", "Peripherals", "Logitech", Decimal("399.90"), 12),
            ("MOU-001", "Wireless Mouse", "Peripherals", "Logitech", Decimal("149.90"), 6),
            ("HDS-001", "Headset", "Audio", "HyperX", Decimal("299.90"), 12),
            ("SSD-001", "SSD 1TB", "Storage", "Samsung", Decimal("549.00"), 36),
            ("DOC-001", "USB-C Dock", "Accessories", "Anker", Decimal("699.00"), 12),
        ]
        for code, name, category, brand, price, warranty in catalog:
            product, _ = Product.objects.get_or_create(
                code=code,
                defaults={
                    "name": name,
                    "category": category,
                    "brand": brand,
                    "price": price,
                    "warranty_months": warranty,
                    "stock": random.randint(20, 200),
                    "status": ProductStatus.ACTIVE,
                },
            )
            products.append(product)
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return products

    def _seed_orders(
        self, customers: list[Customer], products: list[Product], count: int
    ) -> int:
        self.stdout.write("Creating orders...")
        if not customers or not products:
            self.stdout.write(self.style.WARNING("Skipping orders (no customers/products)."))
            return 0
        if Order.objects.alive().exists():
            self.stdout.write(self.style.WARNING("Skipping orders (already seeded)."))
            return 0

        sellers = list(
            get_user_model().objects.filter(groups__name=Role.SELLER).order_by("pk")
        )
        order_repo = OrderDjangoRepository()
        line_repo = OrderLineDjangoRepository()
        order_service = OrderService(
            order_repository=order_repo,
            order_line_repository=line_repo,
            customer_repository=CustomerDjangoRepository(),
            seller_repository=SellerDjangoRepository(),
        )
        line_service = OrderLineService(
            order_repository=order_repo,
            order_line_repository=line_repo,
            product_repository=ProductDjangoRepository(),
        )

        for i in range(count):
            order = order_service.create_order(
                CreateOrderDTO(
                    customer_id=random.choice(customers).id,
                    seller_id=random.choice(sellers).pk,
                    notes=f"Seed order {i + 1}",
                )
            )
            for product in random.sample(products, k=random.randint(1, 4)):
                line_service.create_line(
                    str(order.id),
                    CreateOrderLineDTO(product_id=product.id, quantity=random.randint(1, 3)),
                )
            if random.random() < 0.3:
                order_service.apply_discount(str(order.id), random.choice([5, 10, 15]))
            for target in LIFECYCLE[: random.randint(0, len(LIFECYCLE))]:
                order_service.change_status(str(order.id), target)

        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return count
