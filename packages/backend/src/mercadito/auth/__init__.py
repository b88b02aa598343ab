"""Authentication and authorization.

Learn: Users log in with email/password and get a server-side session.
The browser only holds a signed session id cookie; the session record
(user id + expiry) lives in Mongo. Both HTTP requests and websocket
handshakes resolve that cookie to an Identity.
"""
