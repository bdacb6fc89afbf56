"""Code generation engine for API gateways described by Thrift and Proto IDL."""

__version__ = "0.1.0"
