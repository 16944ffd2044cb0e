# blockworld

A block-based voxel world: chunked world maps, biome-driven terrain
generation, block and item definitions, voxel shapes and chunk meshes,
texture atlases, world saves, and a tick-driven game server that talks to
clients over UDP.

## Installation

```
pip install .
```

To run the tests as well:

```
pip install .[test]
pytest
```

## Running the server

```
blockworld-server --port 8000 --world default --game-folder-path ../
```

All options are optional:

- `--port` / `-p`: UDP port to bind on `0.0.0.0` (default `8000`).
- `--world` / `-w`: name of the world to load (default `default`).
- `--game-folder-path` / `-g`: the game folder (default `../`). It is
  resolved against the directory of the running program, and saves are kept
  under it as `saves/<world>.json`.

If the save file does not exist, the server starts a fresh world with a
random 32-bit seed. A save file that cannot be read or parsed stops the
server with an error. Press Ctrl-C to stop it.

The server runs 60 ticks per second. On each tick it:

- reads every waiting datagram and decodes it with
  `blockworld.messages.decode_message`; the sender is remembered as a peer;
- answers a `WorldUpdateRequest` with the requested chunks that lie within
  the render distance, generating and storing chunks that do not exist yet
  and leaving out empty ones;
- applies `BlockInteraction` messages (place a block, or remove it when
  `block_type` is `None`), records `PlayerInputs`, queues `ChatMessage`s and
  saves the world on a `SaveWorldRequest`;
- advances world time by one every 60 ticks;
- every 10 ticks sends all peers a `WorldUpdate` with the chunks changed since
  the last one;
- sends all peers the whole chat history once a second, or at once when new
  messages arrived.

## Library overview

- `blockworld.config`: `GameFolderPaths`, `SpecialFlag`, `GameServerConfig`,
  `CHUNK_SIZE` (16), and a description of the network channel layout
  (`SendType`, `ChannelConfig`, `ConnectionConfig`, `default_channels`,
  `shared_connection_config`).
- `blockworld.coords`: `IVec3`, `Vec3`, `SIX_OFFSETS` and the coordinate
  helpers `block_to_chunk_coord`, `block_vec3_to_chunk_v3_coord`,
  `to_local_pos`, `to_global_pos`, `global_block_to_chunk_pos`,
  `chunk_in_radius` and `get_game_folder`.
- `blockworld.blocks`: `BlockId` (with `has_hitbox`, `break_time`, `color`,
  `drop_table`, `drops`, `tags`, `visibility`), `BlockDirection`,
  `BlockData`, `ItemId` (with `max_stack`, `default_type`), the item kinds
  `GenericItem`, `BlockItem`, `ToolItem`, `ArmorItem`, plus `ItemStack`,
  `TempBlock`, `block_data_to_dict` and `block_data_from_dict`.
- `blockworld.world`: `ServerWorldMap` and `ClientWorldMap` with `get_block`,
  `set_block` and `remove_block`; `ServerChunk`, `ClientChunk`, `BiomeType`,
  `Biome`, `get_biome_data`, render requests `ChunkToReload` and
  `BlockToReload`, `BlockInteractionEvent`, `handle_block_interactions`, and
  the dictionary forms `chunk_to_dict`, `chunk_from_dict`,
  `world_map_to_dict`, `world_map_from_dict`.
- `blockworld.generation`: `Perlin`, `determine_biome`,
  `interpolated_height` and `generate_chunk` (pass a `random.Random` as `rng`
  for reproducible flora).
- `blockworld.messages`: the client/server messages and
  `encode_message` / `decode_message`, which use a compact JSON encoding.
- `blockworld.voxel`: `FaceDirection`, `Face`, `VoxelShape`, `full_cube`,
  `flora` and `create_voxel_shape`.
- `blockworld.meshing`: `ChunkMesh`, `generate_chunk_mesh`,
  `is_block_surrounded`, `should_render_face`, `rotate_vertices` and
  `chunks_to_reload`.
- `blockworld.atlas`: `UvCoords`, `Atlas`, `build_atlas` (packs 16×16 RGBA
  images into one strip), `texture_directories` and `list_textures`.
- `blockworld.storage`: `WorldData`, `load_world_data`, `load_world_map`,
  `load_world_seed`, `load_world_time`, `save_world_data`, `save_world`,
  `save_file_path`, `world_data_to_text` and `world_data_from_text`.
- `blockworld.byteformat`: `format_bytes`.
- `blockworld.server`: `GameServer`, `RepeatingTimer`, `ServerLobby`,
  `load_server`, `acquire_socket_by_port`,
  `acquire_local_ephemeral_udp_socket` and `main`.

```python
from blockworld.coords import IVec3
from blockworld.blocks import BlockData, BlockId, BlockDirection
from blockworld.world import ServerWorldMap

world = ServerWorldMap(name="demo")
world.set_block(IVec3(-1, 5, 20), BlockData(BlockId.STONE, False, BlockDirection.FRONT))
print(world.get_block(IVec3(-1, 5, 20)))
print(world.chunks_to_update)  # [IVec3(x=-1, y=0, z=1)]
```

## What this package does not do

- There is no game client: nothing opens a window, draws the world, reads
  the keyboard or sends messages to the server. `generate_chunk_mesh` and
  `build_atlas` produce plain data (vertex lists and RGBA bytes) for a
  renderer to use; none is included.
- The server sends each message as a single UDP datagram with no
  acknowledgement, resending or ordering. The channel layout in
  `blockworld.config` describes channels but the server does not use it.
- There are no accounts or sessions: registration messages are ignored,
  session tokens are not checked, and peers are never dropped.
- Player movement is not simulated; received inputs are only recorded.