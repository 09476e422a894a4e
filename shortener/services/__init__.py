"""
Services module for business logic separation.

URLShorteningService orchestrates short code creation, redirection with
visit recording, and paginated listings on top of a URLStore.
"""
