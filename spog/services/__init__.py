"""Services package - Business logic layer for the SPOG Inventory Tracker.

This package contains all service modules that provide business logic
and database operations for the application.

Architecture:
- Services: Stateless functions organized by domain
- Transactions: Managed via session_scope() context manager
- Exceptions: Consistent error handling via ServiceError hierarchy
- Validation: Input validation before database operations

Core (pure, no database access):
- unit_converter: Unit conversion table, lenient and strict conversion
- consumption_validator: Balance check for consumption requests
- stock_status: normal / low / critical classification and summaries

Service Modules:
- location_service: Storage locations
- inventory_service: Inventory items, balance adjustments, refills
- consumption_service: Consumption recording, edits, summaries
- report_service: Inventory status, trends, expiry, utilization, CSV export
- permissions: Role permission map and per-user grants
- user_service: Account management
- auth_service: Login sessions, passwords, email verification

Infrastructure:
- exceptions: Custom exception classes for service layer errors
- database: Session management and database utilities
- logging_utils: Structured operation logging
- dto: Pagination containers
"""
