"""Product management — commands and handler for catalogue stock upkeep."""

import json

from protean import handle
from protean.fields import Float, Identifier, Integer, List, String, Text
from protean.utils.globals import current_domain

from backoffice.domain import backoffice
from backoffice.inventory.ledger import InventoryLedger
from backoffice.inventory.product import Product
from backoffice.inventory.variants import generate_variants
from backoffice.settings.settings import load_engine_config


@backoffice.command(part_of="Product")
class CreateProduct:
    """Add a product with either a flat stock count or an explicit variant list."""

    name = String(required=True, max_length=255)
    price = Float(default=0.0, min_value=0.0)
    stock = Integer(default=0, min_value=0)
    variants = Text()  # JSON list of {color, size, stock}


@backoffice.command(part_of="Product")
class GenerateVariantMatrix:
    """Build (or rebuild) the color x size matrix of a product."""

    product_id = Identifier(required=True)
    colors = List(content_type=String, required=True)
    sizes = List(content_type=String, required=True)


@backoffice.command(part_of="Product")
class SetProductStock:
    """Overwrite the flat stock level of a product without variants."""

    product_id = Identifier(required=True)
    stock = Integer(required=True, min_value=0)


@backoffice.command(part_of="Product")
class SetVariantStock:
    """Overwrite the stock level of one variant."""

    product_id = Identifier(required=True)
    color = String(required=True, max_length=50)
    size = String(required=True, max_length=20)
    stock = Integer(required=True, min_value=0)


@backoffice.command_handler(part_of=Product)
class ProductManagementHandler:
    @handle(CreateProduct)
    def create_product(self, command):
        variants = json.loads(command.variants) if command.variants else None
        product = Product.create(
            name=command.name,
            price=command.price or 0.0,
            stock=command.stock or 0,
            variants=variants,
        )
        current_domain.repository_for(Product).add(product)
        return str(product.id)

    @handle(GenerateVariantMatrix)
    def generate_variant_matrix(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.regenerate_variants(command.colors, command.sizes)
        repo.add(product)
        return len(product.variants)

    @handle(SetProductStock)
    def set_product_stock(self, command):
        ledger = InventoryLedger(load_engine_config())
        return ledger.set_stock(command.product_id, command.stock).to_dict()

    @handle(SetVariantStock)
    def set_variant_stock(self, command):
        ledger = InventoryLedger(load_engine_config())
        return ledger.set_stock(
            command.product_id,
            command.stock,
            color=command.color,
            size=command.size,
        ).to_dict()


def product_matrix(colors, sizes, default_stock=0) -> str:
    """JSON variant payload for ``CreateProduct`` built from colors and sizes."""
    return json.dumps(generate_variants(colors, sizes, default_stock))
