# ispdesk/utils/device_clients/adapters/__init__.py
