import re

SUPPORTED_LOCALES = ("es", "en")

_INVALID_VALUE_PATTERN = re.compile(r"^Invalid value for '([\w.]+)'$")

# Keys are the canonical English messages raised by the service layer.
_TRANSLATIONS: dict[str, dict[str, str]] = {
    "Product not found": {
        "es": "Producto no encontrado",
        "en": "Product not found",
    },
    "Required fields: name, price, description, category, image": {
        "es": "Campos requeridos: name, price, description, category, image",
        "en": "Required fields: name, price, description, category, image",
    },
    "Image must be a file": {
        "es": "La imagen tiene que ser un archivo de tipo File",
        "en": "Image must be a file",
    },
    "Price must be a number": {
        "es": "El precio tiene que ser un número",
        "en": "Price must be a number",
    },
    "Price must be positive": {
        "es": "El precio debe ser positivo",
        "en": "Price must be positive",
    },
    "Error uploading image": {
        "es": "Error al subir la imagen",
        "en": "Error uploading image",
    },
    "Error fetching products": {
        "es": "Error al obtener los productos",
        "en": "Error fetching products",
    },
    "Error fetching product": {
        "es": "Error al obtener el producto",
        "en": "Error fetching product",
    },
    "Error creating product": {
        "es": "Error al crear el producto",
        "en": "Error creating product",
    },
    "Error updating product": {
        "es": "Error al actualizar el producto",
        "en": "Error updating product",
    },
    "Failed to delete product": {
        "es": "Error al eliminar el producto",
        "en": "Failed to delete product",
    },
    "Product deleted successfully": {
        "es": "Producto eliminado correctamente",
        "en": "Product deleted successfully",
    },
    "File not found": {
        "es": "Archivo no encontrado",
        "en": "File not found",
    },
    "Internal server error": {
        "es": "Error interno del servidor",
        "en": "Internal server error",
    },
    # app.client form and action messages
    "Name is required": {
        "es": "El nombre es obligatorio",
        "en": "Name is required",
    },
    "Description is required": {
        "es": "La descripción es obligatoria",
        "en": "Description is required",
    },
    "Category is required": {
        "es": "La categoría es obligatoria",
        "en": "Category is required",
    },
    "Image is required": {
        "es": "La imagen es obligatoria",
        "en": "Image is required",
    },
    "Image must be a file or an existing URL": {
        "es": "La imagen debe ser un archivo o una URL existente",
        "en": "Image must be a file or an existing URL",
    },
    "Unsupported image format or size exceeded": {
        "es": "Formato de imagen no soportado o tamaño excedido",
        "en": "Unsupported image format or size exceeded",
    },
    "Product created successfully": {
        "es": "Producto creado correctamente",
        "en": "Product created successfully",
    },
    "Product updated successfully": {
        "es": "Producto actualizado correctamente",
        "en": "Product updated successfully",
    },
    "Failed to create product": {
        "es": "No se pudo crear el producto",
        "en": "Failed to create product",
    },
    "Failed to update product": {
        "es": "No se pudo actualizar el producto",
        "en": "Failed to update product",
    },
}


def _localize_dynamic(message: str) -> dict[str, str] | None:
    match = _INVALID_VALUE_PATTERN.match(message)
    if match:
        field = match.group(1)
        return {
            "es": f"Valor inválido para '{field}'",
            "en": message,
        }
    return None


def normalize_locale(value: str | None, default: str = "es") -> str:
    """Pick the first supported language out of an Accept-Language style header."""

    if not value:
        return default
    for part in value.split(","):
        tag = part.split(";", 1)[0].strip().lower()
        language = tag.split("-", 1)[0]
        if language in SUPPORTED_LOCALES:
            return language
    return default


def localize_message(message: str, locale: str = "es") -> str:
    """
    Translate a canonical service message into the requested locale.
    Unknown messages fall back to the original text.
    """

    text = (message or "").strip()
    if not text:
        return ""

    translations = _localize_dynamic(text) or _TRANSLATIONS.get(text)
    if not translations:
        return text
    return translations.get(locale, text)


def toggle_locale(locale: str) -> str:
    """Switch between the two supported languages."""

    return "en" if locale == "es" else "es"
