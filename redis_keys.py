REDIS_META_KEY = "room:meta:{slug}" # room id - hash of the room record
REDIS_ROOMS_INDEX_KEY = "rooms:index" # set of every known room id

# **`room:meta:{id}` hash fields**
# - `name` = room name
# - `description` = free text, may be empty
# - `createdAt` = ISO timestamp (UTC)
