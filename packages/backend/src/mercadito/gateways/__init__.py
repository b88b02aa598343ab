"""Gateways — thin async façades over one Mongo collection each.

Learn: Routes and the realtime bridge call gateways, gateways call the
database. Every gateway receives the database handle and the app logger
in its constructor, so nothing here reaches for a module global.
"""
