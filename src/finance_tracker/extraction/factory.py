import importlib
from typing import Any, Dict, Optional, Type

from finance_tracker.config.settings import ConfigLoader
from finance_tracker.domain.enums import DocumentKind
from finance_tracker.extraction.base import DocumentExtractor

class ExtractorFactory:
    """
    Factory for creating document extractors.

    Uses a registry pattern to map document kinds to extractor classes.
    """

    _locked = False
    _registry: Dict[DocumentKind, Type[DocumentExtractor]] = {}

    @classmethod
    def register(cls, kind: DocumentKind | str, extractor_class: Type[DocumentExtractor]) -> None:
        """
        Register an extractor for a document kind

        Args:
            kind: Document kind (e.g, 'receipt', 'statement')
            extractor_class: The extractor class

        Raises:
            ValueError: If the kind is unknown or already registered
            TypeError: If extractor_class doesn't inherit from DocumentExtractor
            RuntimeError: If the registry is locked

        Example:
            ExtractorFactory.register('receipt', ReceiptExtractor)
        """
        if cls._locked:
            raise RuntimeError("Registry is locked, cannot add more extractors")

        kind = DocumentKind(kind)

        if kind in cls._registry:
            raise ValueError(f"Extractor for '{kind.value}' is already registered")

        if not (isinstance(extractor_class, type) and issubclass(extractor_class, DocumentExtractor)):
            raise TypeError(f"{extractor_class} must inherit from DocumentExtractor")

        cls._registry[kind] = extractor_class

    @classmethod
    def lock_registry(cls):
        """Prevent further registration (call after app initialization)"""
        cls._locked = True

    @classmethod
    def is_loaded(cls) -> bool:
        return cls._locked

    @classmethod
    def create_extractor(cls, kind: DocumentKind | str, **kwargs) -> DocumentExtractor:
        """
        Create an extractor instance for the document kind.

        Args:
            kind: Document kind (e.g., 'paystub')
            **kwargs: Passed to the extractor (client, categorization_engine)

        Raises:
            ValueError: If no extractor is registered for this kind

        Example:
            extractor = ExtractorFactory.create_extractor('statement', client=client)
            transactions = extractor.extract('statement.pdf')
        """
        requested = kind.value if isinstance(kind, DocumentKind) else kind
        try:
            kind = DocumentKind(kind)
        except ValueError:
            kind = None

        if kind not in cls._registry:
            available = ', '.join(k.value for k in cls._registry)
            raise ValueError(
                f"No extractor registered for '{requested}'. "
                f"Available extractors: {available}"
            )

        return cls._registry[kind](**kwargs)

    @classmethod
    def get_available_kinds(cls) -> list[str]:
        """Return list of all registered document kinds"""
        return [k.value for k in cls._registry]

    @classmethod
    def load_extractors_from_config(
        cls,
        config: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Load and register extractors from configuration

        Args:
            config: Optional config dict. If None, loads from ConfigLoader.
                Useful for testing with custom configs.
        """
        if config is None:
            config = ConfigLoader.load_extractors_config()

        for extractor_config in config['extractors']:
            module_path, class_name = str(extractor_config['class']).rsplit('.', 1)
            module = importlib.import_module(module_path)
            extractor_class = getattr(module, class_name)

            cls.register(extractor_config['kind'], extractor_class)

        cls.lock_registry()
