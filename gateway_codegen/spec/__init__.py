"""IDL-level specs built from module configs: modules, clients, endpoints."""
