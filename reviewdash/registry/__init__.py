"""
Property Registry Module.

Maps Hostaway listing names to stable property IDs and persists
the listing names seen for each property.
"""
