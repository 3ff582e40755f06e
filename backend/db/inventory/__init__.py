"""
Inventory items.

Models:
- InventoryItem (one stocked variant of an item type, bought from one supplier)
"""
