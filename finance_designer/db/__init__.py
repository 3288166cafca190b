"""SQLAlchemy persistence adapter for canonical voucher type definitions."""
