# Services package.
#
# Each module exposes a focused set of functions that encapsulate the
# business rules for one concern of the car listing API:
#
#   auth_service     — password hashing, token issuance / verification
#   user_service     — registration, login, refresh and profile upkeep
#   listing_fields   — derived listing fields (title, INR price format)
#   listing_service  — create / read / update / soft delete of listings
#   listing_query    — search parameter compilation and pagination
#   listing_stats    — overview, top makes and fuel type aggregates
#
# Async service functions take a store (``ListingStore`` / ``UserStore``)
# as their first argument so that the router layer controls the
# transaction boundary via the ``get_db`` dependency.
