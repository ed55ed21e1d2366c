# Services package.
#
#   game_service  — paginated listing (cache-aside), detail and create
#                   for the Game aggregate
#
# Service functions take an AsyncSession as their first argument so that
# the router layer owns the transaction boundary via ``get_db``.
