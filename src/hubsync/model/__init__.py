"""HubSpot entity kinds: contacts, companies, and marketplace deals.

Each module defines the typed data dataclass, the Entity subclass with
association helpers, the adapter built from configured property names, and
the kind's EntityManager with its lookups.
"""
