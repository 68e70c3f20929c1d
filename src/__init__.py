"""
SPLASH'N'GO! Store Ordering — backend for store supply orders

Packages:
    api/        Flask Blueprint, route modules and workflow traces
    forms/      Purchase order documents (PDF / XLSX)
    agents/     Transactional email
    core/       Sheets access, catalog, pricing, routing, orders, parts, stores, config
"""
