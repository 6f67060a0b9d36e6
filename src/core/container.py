"""
Dependency Injection Container seguendo il principio DIP (Dependency Inversion Principle)
"""
import inspect
import logging
from typing import TypeVar, Dict, Any, Callable, Type

logger = logging.getLogger(__name__)

T = TypeVar('T')

class Container:
    """
    Registro interfaccia -> implementazione.

    - singleton: un'istanza per processo (es. il gateway del vettore)
    - transient: nuova istanza per ogni risoluzione; repository e service vengono
      risolti con resolve_with_session per condividere la sessione della richiesta
    """

    def __init__(self):
        self._singleton_factories: Dict[str, Callable[[], Any]] = {}
        self._singletons: Dict[str, Any] = {}
        self._transients: Dict[str, Type] = {}

    def register_singleton(self, interface: Type[T], implementation: Type[T]):
        key = self._get_key(interface)
        self._singleton_factories[key] = lambda: self._build(implementation, session=None, overrides={})
        logger.debug(f"Registered singleton {key} -> {implementation.__name__}")

    def register_transient(self, interface: Type[T], implementation: Type[T]):
        key = self._get_key(interface)
        self._transients[key] = implementation

    def is_registered(self, interface: Any) -> bool:
        key = self._get_key(interface)
        return key in self._singleton_factories or key in self._transients

    def resolve(self, interface: Type[T]) -> T:
        """Risolve una dipendenza senza sessione DB"""
        key = self._get_key(interface)
        if key in self._singleton_factories:
            if key not in self._singletons:
                self._singletons[key] = self._singleton_factories[key]()
            return self._singletons[key]
        if key in self._transients:
            return self._build(self._transients[key], session=None, overrides={})
        raise ValueError(f"Cannot resolve {key}: No registration found")

    def resolve_with_session(self, interface: Type[T], session, **overrides) -> T:
        """
        Risolve una dipendenza iniettando una sessione DB.

        I parametri del costruttore vengono risolti ricorsivamente con la stessa sessione;
        `overrides` permette di fornire istanze esplicite per nome di parametro
        (es. il gateway del vettore fornito dalla dependency FastAPI).
        """
        key = self._get_key(interface)
        if key not in self._transients:
            return self.resolve(interface)
        return self._build(self._transients[key], session, overrides)

    def _build(self, implementation: Type[T], session, overrides: Dict[str, Any]) -> T:
        """
        Costruisce l'implementazione risolvendo i parametri in quest'ordine:
        override per nome, `session`, annotazione registrata, valore di default.
        """
        kwargs = {}
        for param_name, param in inspect.signature(implementation.__init__).parameters.items():
            if param_name == 'self' or param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
                continue
            if param_name in overrides:
                kwargs[param_name] = overrides[param_name]
            elif param_name == 'session':
                kwargs[param_name] = session
            elif self._is_injectable(param.annotation):
                kwargs[param_name] = self.resolve_with_session(param.annotation, session, **overrides)
            elif param.default != inspect.Parameter.empty:
                kwargs[param_name] = param.default
            else:
                raise ValueError(f"Cannot resolve parameter {param_name} of {implementation.__name__}")
        return implementation(**kwargs)

    def _is_injectable(self, annotation: Any) -> bool:
        return annotation != inspect.Parameter.empty and self.is_registered(annotation)

    @staticmethod
    def _get_key(interface: Any) -> str:
        return getattr(interface, '__name__', str(interface))

# Global container instance
container = Container()
