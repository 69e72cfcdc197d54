"""
Main project exports - Centralized imports for the entire application.

This module provides convenient access to all major components of the application.
"""

__version__ = "1.0.0"

from .core import *
from .config import *
from .providers import *
from .models import *
from .connectors import *
from .interface import *
from .core.factories import ConnectorFactory, InterfaceFactory, create_client

from . import config, connectors, core, interface, models, providers

__all__ = ['__version__', 'ConnectorFactory', 'InterfaceFactory', 'create_client']
__all__.extend(core.__all__)
__all__.extend(config.__all__)
__all__.extend(providers.__all__)
__all__.extend(models.__all__)
__all__.extend(connectors.__all__)
__all__.extend(interface.__all__)
