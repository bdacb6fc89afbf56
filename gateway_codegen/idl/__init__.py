"""IDL loaders for Thrift and Protocol Buffers."""

from .proto import ProtoModule, ProtoRPC, ProtoService, load_proto
from .thrift import (
    EnumType,
    ListType,
    MapType,
    PrimitiveType,
    SetType,
    StructType,
    ThriftField,
    ThriftFunction,
    ThriftLoader,
    ThriftModule,
    ThriftService,
    ThriftType,
    TypedefType,
)

__all__ = [
    "ProtoModule",
    "ProtoRPC",
    "ProtoService",
    "load_proto",
    "EnumType",
    "ListType",
    "MapType",
    "PrimitiveType",
    "SetType",
    "StructType",
    "ThriftField",
    "ThriftFunction",
    "ThriftLoader",
    "ThriftModule",
    "ThriftService",
    "ThriftType",
    "TypedefType",
]
