"""Bindery RPC binding generator."""

from .loader import ValidationError as ValidationError
from .loader import load as load
from .loader import validate as validate
from .model import BindingSet as BindingSet
from .model import Declaration as Declaration
from .model import DeclKind as DeclKind
from .model import OutputUnit as OutputUnit
from .model import build_bindings as build_bindings
from .model import build_unit as build_unit
from .naming import NamingSet as NamingSet
from .naming import resolve as resolve
from .shapes import StreamShape as StreamShape
from .shapes import classify as classify
from .signatures import Role as Role
from .signatures import Signature as Signature
from .signatures import Tier as Tier
from .signatures import synthesize as synthesize
from .types import DescriptorUnit as DescriptorUnit
from .types import MethodDescriptor as MethodDescriptor
from .types import ServiceDescriptor as ServiceDescriptor
from .types import TypeRef as TypeRef
