"""Document generation.

Key exports:
    generate_purchase_order() — Parts purchase order as PDF or XLSX
"""
