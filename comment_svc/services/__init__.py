# Services package.
#
#   comment_service : CommentStore, cache-aside reads and write-through
#                      creation of video comments
#
# The store receives its repository, cache backend and logger at
# construction time; ``main.lifespan`` wires the production instances and
# the test-suite wires SQLite + InMemoryCache.
