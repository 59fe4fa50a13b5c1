"""
Socket Server
=============

Unix domain socket listener for render requests.
"""
