"""Category domain service."""

from typing import Optional

from loguru import logger

from bubu.database.base import Database
from bubu.domain.entities import Category, TransactionType
from bubu.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    category_not_found,
    category_name_not_found,
    predefined_category,
)

DEFAULT_COLOR = "#6B7280"
DEFAULT_ICON = "📁"

EXPENSE_FALLBACK = "Otros Gastos"
INCOME_FALLBACK = "Otros Ingresos"

# (name, type, icon, color) for the categories every installation starts with
PREDEFINED_CATEGORIES = [
    ("Comida", "expense", "🍔", "#F59E0B"),
    ("Transporte", "expense", "🚗", "#3B82F6"),
    ("Entretenimiento", "expense", "🎬", "#8B5CF6"),
    ("Servicios", "expense", "💡", "#06B6D4"),
    ("Salud", "expense", "💊", "#EF4444"),
    ("Educación", "expense", "📚", "#10B981"),
    ("Ropa", "expense", "👕", "#EC4899"),
    ("Hogar", "expense", "🏠", "#84CC16"),
    (EXPENSE_FALLBACK, "expense", "📦", DEFAULT_COLOR),
    ("Nómina", "income", "💼", "#22C55E"),
    ("Ventas", "income", "🛒", "#14B8A6"),
    ("Inversiones", "income", "📈", "#6366F1"),
    (INCOME_FALLBACK, "income", "💰", DEFAULT_COLOR),
]

PREDEFINED_NAMES = {name.casefold() for name, _, _, _ in PREDEFINED_CATEGORIES}

# Keyword substrings checked in order; the first category with a hit wins
EXPENSE_KEYWORDS = [
    ("Comida", ["comida", "taco", "restaurante", "cena", "desayuno", "almuerzo", "comí", "pizza", "hamburguesa", "café"]),
    ("Transporte", ["uber", "taxi", "gasolina", "transporte", "metro", "autobús", "parking"]),
    ("Entretenimiento", ["cine", "netflix", "spotify", "juego", "concierto", "fiesta", "bar"]),
    ("Servicios", ["luz", "agua", "internet", "teléfono", "servicio"]),
    ("Salud", ["doctor", "medicamento", "farmacia", "hospital", "dentista", "consulta"]),
    ("Educación", ["curso", "libro", "escuela", "universidad", "clase"]),
    ("Ropa", ["ropa", "zapatos", "camisa", "pantalón", "vestido"]),
    ("Hogar", ["renta", "mueble", "decoración", "limpieza", "hogar"]),
]

INCOME_KEYWORDS = [
    ("Nómina", ["nómina", "nomina", "sueldo", "salario", "pago", "quincena"]),
    ("Ventas", ["venta", "vendí", "cliente", "cobro"]),
    ("Inversiones", ["inversión", "dividendo", "interés", "ganancia"]),
]


def validate_type(category_type: str) -> str:
    """Return the type if it is a valid transaction/category type."""
    valid = {t.value for t in TransactionType}
    if category_type not in valid:
        raise ValidationError(
            f"Invalid type '{category_type}'. Must be one of: expense, income"
        )
    return category_type


def is_predefined(name: str) -> bool:
    """Check whether a category name is one of the predefined ones."""
    return name.strip().casefold() in PREDEFINED_NAMES


def fallback_name(category_type: str) -> str:
    """Name of the category that absorbs transactions of a deleted one."""
    return INCOME_FALLBACK if category_type == TransactionType.INCOME.value else EXPENSE_FALLBACK


class CategoryService:
    """Service for managing categories."""

    def __init__(self, db: Database):
        """Initialize category service.

        Args:
            db: Database instance
        """
        self.db = db

    def ensure_predefined(self) -> int:
        """Create any missing predefined category.

        Returns:
            Number of categories created
        """
        created = 0
        for name, category_type, icon, color in PREDEFINED_CATEGORIES:
            if self.db.get_category_by_name(name) is None:
                self.db.create_category(name=name, category_type=category_type, color=color, icon=icon)
                created += 1
        if created:
            logger.info("Created {} predefined categories", created)
        return created

    def get_category(self, category_id: int) -> Optional[Category]:
        """Get category by ID.

        Args:
            category_id: Category ID

        Returns:
            Category entity or None if not found
        """
        return self.db.get_category(category_id)

    def find_by_name(self, name: str) -> Optional[Category]:
        """Find a category by exact name, ignoring case."""
        if not name or not name.strip():
            return None
        return self.db.get_category_by_name(name)

    def list_categories(self, category_type: Optional[str] = None) -> list[Category]:
        """List categories.

        Args:
            category_type: Optional type ("expense" or "income") to filter by

        Returns:
            List of category entities
        """
        if category_type is not None:
            validate_type(category_type)
        return self.db.list_categories(category_type=category_type)

    def get_fallback(self, category_type: str) -> Category:
        """Return the fallback category for a type, creating it if missing."""
        name = fallback_name(category_type)
        category = self.db.get_category_by_name(name)
        if category is None:
            category_id = self.db.create_category(
                name=name, category_type=category_type, color=DEFAULT_COLOR, icon="📦"
            )
            category = self.db.get_category(category_id)
        return category

    def suggest(self, description: Optional[str], category_type: str = "expense") -> Optional[Category]:
        """Suggest a category from keywords in a description.

        Args:
            description: Free-text description (e.g., "uber al aeropuerto")
            category_type: "expense" or "income"

        Returns:
            Matching category, the type's fallback category, or None when
            neither exists
        """
        text = (description or "").casefold()
        table = INCOME_KEYWORDS if category_type == TransactionType.INCOME.value else EXPENSE_KEYWORDS
        for name, keywords in table:
            if any(keyword in text for keyword in keywords):
                category = self.db.get_category_by_name(name)
                if category is not None:
                    return category
        return self.db.get_category_by_name(fallback_name(category_type))

    def create_category(
        self,
        name: str,
        category_type: str = "expense",
        color: Optional[str] = None,
        icon: Optional[str] = None,
    ) -> Category:
        """Create a custom category.

        Args:
            name: Category name (unique, case-insensitive)
            category_type: "expense" or "income"
            color: Optional hex color
            icon: Optional emoji icon

        Returns:
            Created category

        Raises:
            ValidationError: If the name is empty or the type is invalid
            ConflictError: If a category with that name already exists
        """
        if not name or not name.strip():
            raise ValidationError("Category name cannot be empty")
        name = name.strip()
        validate_type(category_type)
        if self.db.get_category_by_name(name) is not None:
            raise ConflictError(f"Category '{name}' already exists")

        category_id = self.db.create_category(
            name=name,
            category_type=category_type,
            color=color or DEFAULT_COLOR,
            icon=icon or DEFAULT_ICON,
        )
        logger.info("Created category '{}' ({})", name, category_type)
        return self.db.get_category(category_id)

    def update_category(
        self,
        category_id: int,
        name: Optional[str] = None,
        color: Optional[str] = None,
        icon: Optional[str] = None,
    ) -> Category:
        """Update a custom category.

        Raises:
            NotFoundError: If the category doesn't exist
            ConflictError: If the category is predefined or the new name is taken
            ValidationError: If nothing would change
        """
        category = self.db.get_category(category_id)
        if category is None:
            raise NotFoundError(category_not_found(category_id))
        if is_predefined(category.name):
            raise ConflictError(predefined_category(category.name))
        if name is None and color is None and icon is None:
            raise ValidationError("No changes provided for category update")

        if name is not None:
            name = name.strip()
            if not name:
                raise ValidationError("Category name cannot be empty")
            existing = self.db.get_category_by_name(name)
            if existing is not None and existing.id != category_id:
                raise ConflictError(f"Category '{name}' already exists")

        self.db.update_category(category_id, name=name, color=color, icon=icon)
        return self.db.get_category(category_id)

    def delete_category(self, category_id: int) -> dict:
        """Delete a custom category, moving its transactions to the fallback.

        Args:
            category_id: Category ID

        Returns:
            Dict with deleted (name), moved_count and moved_to_name

        Raises:
            NotFoundError: If the category doesn't exist
            ConflictError: If the category is predefined
        """
        category = self.db.get_category(category_id)
        if category is None:
            raise NotFoundError(category_not_found(category_id))
        if is_predefined(category.name):
            raise ConflictError(predefined_category(category.name))

        fallback = self.get_fallback(category.category_type)
        moved = self.db.delete_category(category_id, fallback_category_id=fallback.id)
        logger.info(
            "Deleted category '{}', moved {} transactions to '{}'", category.name, moved, fallback.name
        )
        return {"deleted": category.name, "moved_count": moved, "moved_to_name": fallback.name}

    def move_transactions(
        self, from_name: str, to_name: str, phone: Optional[str] = None
    ) -> dict:
        """Move transactions from one category to another by name.

        The target category is created with the source's type when it doesn't
        exist yet.

        Args:
            from_name: Source category name
            to_name: Target category name
            phone: Optional phone to restrict the move to one user's rows

        Returns:
            Dict with moved_count, from_name, to_name and created (bool)

        Raises:
            NotFoundError: If the source category doesn't exist
            ValidationError: If source and target are the same category
        """
        source = self.find_by_name(from_name)
        if source is None:
            raise NotFoundError(category_name_not_found(from_name))

        created = False
        target = self.find_by_name(to_name)
        if target is None:
            target = self.create_category(name=to_name, category_type=source.category_type)
            created = True
        if target.id == source.id:
            raise ValidationError("Source and target categories are the same")

        moved = self.db.reassign_category(source.id, target.id, user_phone=phone)
        logger.info("Moved {} transactions from '{}' to '{}'", moved, source.name, target.name)
        return {
            "moved_count": moved,
            "from_name": source.name,
            "to_name": target.name,
            "created": created,
        }
