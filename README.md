# gamebase

Building blocks for small 3D games:

- a transform hierarchy with cameras, lights and drawables, and a
  loader for binary scene files;
- reading and writing of simple chunked binary data;
- PNG and WAV loading;
- a 48 kHz stereo software mixer with 2D and 3D panning;
- an orbit camera and a mesh selector for inspecting scenes and mesh
  collections.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Modules

### `gamebase.chunks`

A chunk is a four-byte magic tag, a little-endian 32-bit payload size
and the payload.

- `read_chunk(stream, magic, record)` reads a chunk and unpacks its
  payload with the `struct.Struct` `record`, returning a list of tuples.
- `read_chunk_bytes(stream, magic)` returns the raw payload.
- `write_chunk(magic, records, record, stream)` and
  `write_chunk_bytes(magic, data, stream)` write chunks in the same
  layout. The magic tag must be exactly four bytes (`ValueError` otherwise).
- `ChunkError` is raised for a short header, a wrong magic tag, a size
  that is not a multiple of the record size, or truncated data.

### `gamebase.data_path`

- `executable_dir()` returns the directory holding the running program
  (the frozen executable, the script in `sys.argv[0]`, or the Python
  interpreter). The result is cached.
- `data_path(suffix)` returns `executable_dir() + "/" + suffix`.

### `gamebase.png_io`

- `load_png(path, origin)` returns `((width, height), pixels)`, where
  `pixels` is a `(height, width, 4)` `uint8` RGBA array. With
  `OriginLocation.LOWER_LEFT` row 0 is the bottom row; with
  `OriginLocation.UPPER_LEFT` it is the top row. Palette, grey and
  16-bit images are converted to 8-bit RGBA.
- `save_png(path, size, data, origin)` writes `width * height` RGBA
  pixels as a PNG.
- `PngError` is raised when a file cannot be opened, is not a PNG, or
  cannot be written.

### `gamebase.wav`

- `load_wav(path)` returns mono 48 kHz `float32` samples. 8/16/24/32-bit
  PCM and 32/64-bit float files are accepted; other layouts are
  averaged down to mono and linearly resampled to 48 kHz. It prints a
  note when converting and prints the sample range.
- `WavError` is raised when the file cannot be read or decoded.

### `gamebase.linalg`

Quaternions are `(w, x, y, z)`; affine transforms are `(3, 4)` numpy
arrays with the translation in the last column.

`quat_to_mat3`, `quat_inverse`, `quat_multiply`, `quat_rotate`,
`angle_axis`, `pad_affine` (adds a `(0, 0, 0, 1)` row) and
`infinite_perspective(fovy, aspect, near)`.

### `gamebase.scene`

- `Transform` holds `name`, `position`, `rotation`, `scale` and an
  optional `parent`, and builds `make_local_to_parent()`,
  `make_parent_to_local()`, `make_local_to_world()` and
  `make_world_to_local()`. A zero scale gives a degenerate, finite
  inverse rather than NaNs.
- `Drawable` (a transform plus an opaque `pipeline` object), `Camera`
  (`fovy`, `aspect`, `near`, `make_projection()`), `Light` (`type` as a
  `LightType`, `energy`, `spot_fov`).
- `Scene` holds lists of `transforms`, `drawables`, `cameras` and
  `lights`.
  - `Scene.load(filename, on_drawable)` reads the chunks `str0`, `xfh0`,
    `msh0`, `cam0` and `lmp0`. For each mesh entry it calls
    `on_drawable(scene, transform, mesh_name)` when one is given.
    Non-perspective cameras and unknown lamp types are skipped with a
    message. Malformed files raise `SceneFormatError`. A warning goes to
    stderr if data follows the last chunk.
  - `Scene.load_extra(stream, names, transforms)` is called after the
    standard chunks are read and does nothing. Override it in a subclass
    to read further chunks.
  - `Scene.set(other)` makes the scene a copy of `other` and returns the
    old-to-new transform mapping. `Scene.copy()` returns such a copy.
    All parent and attachment references point into the new scene.

### `gamebase.sound`

- `Sample(data)` holds mono float32 samples. `Sample.load(filename)`
  loads a `.wav` file. Opus files and other extensions raise `ValueError`.
- `Ramp` moves a value toward a target over a number of seconds.
- `Mixer` holds the global `volume`, a `listener` and the
  `playing_samples`.
  - `play`, `loop` play a sample in 2D, with pan from -1 (left) to 1
    (right).
  - `play_3d`, `loop_3d` play a sample at a position relative to the
    listener, with a half-volume radius.
  - `stop_all_samples`, `set_volume`.
- `PlayingSample` is returned by the play methods and offers
  `set_volume`, `set_pan`, `set_position`, `set_half_volume_radius` and
  `stop`. `stop` fades the sample out.
- `Listener.set_position_right(position, right, ramp)` moves the
  listener. A zero `right` vector is treated as +x.
- `Mixer.mix()` advances all ramps by one block and returns a
  `(1024, 2)` float32 array of left/right frames. Finished or fully
  faded samples are removed.
- The panning and ramp helpers are available as functions:
  `compute_pan_weights`, `compute_pan_from_listener_and_position`,
  `step_value_ramp`, `step_position_ramp` and `step_direction_ramp`.

### `gamebase.viewer`

- `OrbitCamera` is a z-up trackball camera with `radius`, `azimuth`,
  `elevation`, `target` and `flip_x`.
  - `begin_drag()` starts a drag.
  - `drag(xrel, yrel, window_size, pan)` tumbles the camera, or pans it
    when `pan` is true.
  - `dolly(wheel)` zooms, with the radius clamped to 0.1 to 1e6.
  - `rotation()` and `position()` return the camera's pose.
  - `apply(camera, drawable_size)` places a `Camera` and sets its aspect.
- `MeshSelector(meshes)` steps through a name-to-mesh mapping in sorted
  order with `select_prev()` and `select_next()`. It stops at the ends.
  Meshes need `type`, `start`, `count`, `min` and `max` attributes.

## Example

```python
from gamebase.scene import Scene
from gamebase.sound import Mixer, Sample

scene = Scene()
scene.load("level.scene", lambda scn, transform, name: print(name, transform.name))

mixer = Mixer()
beep = mixer.play(Sample([0.0, 0.5, 0.0, -0.5] * 1000), volume=0.8, pan=-0.5)
frames = mixer.mix()  # (1024, 2) float32 left/right frames
beep.stop()
```

## What this package does not do

- It opens no window and draws nothing. `Drawable.pipeline` is an
  opaque object, and no graphics calls are made.
- It has no viewer programs or other commands. `OrbitCamera` and
  `MeshSelector` hold the control logic only.
- It does not load mesh files.
- It opens no audio device. Your own audio output callback must call
  `Mixer.mix()`.
- It does not decode Opus audio.