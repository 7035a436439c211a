# procman

procman builds small root filesystem images from an Alpine Linux base. It can
then prepare process contexts from those images. An image is described by an
`ImageSpec.yaml` file in a context directory. The file names the Alpine base
version, a list of build steps, and the job that processes started from the
image are meant to run.

A build downloads the Alpine minimal root filesystem with `wget`. It runs
`tar`, `cp`, `chmod`, `find` and `sh`, and it uses `chroot` for `run` steps.
By default it writes under `/var/lib/procman`. You need a Linux host, network
access and root privileges.

## Installing

```
pip install .
```

## The image spec

```yaml
base: alpine:3.20
steps:
  - name: add app
    type: copy
    source: app
    destination: /opt/app
  - name: install tools
    type: run
    command: ["apk", "add", "curl"]
job:
  name: app
  command: ["/opt/app/run.sh"]
```

- `base` must have the form `<name>:<version>`. Only the version is used. The
  root filesystem is always the `x86_64` Alpine minirootfs for `<version>.0`.
- `copy` steps copy `source`, relative to the context directory, to
  `destination` inside the image root filesystem.
- `run` steps run `command` chrooted inside the image root filesystem. Only
  `PATH=/bin:/sbin:/usr/bin:/usr/sbin` is set in the environment. A non-zero
  exit status fails the build.
- Steps of any other type are ignored.
- The job is written to `/etc/procman/job.yaml` inside the image.

## The store

Every store path sits under a root directory, `/var/lib/procman` by default:

- `<root>/img/<id>/img.tar.gz` holds the archived root filesystem of an image.
- `<root>/img/<id>/img.yaml` holds its metadata: id, name, path, tag, and the
  UTC creation time as `YYYY-MM-DD HH:MM:SS`.
- `<root>/proc/<id>/rootfs/` holds the unpacked image of a process.
- `<root>/proc/<id>/rootfs/etc/procman/process.yaml` records the process.

Image and process ids are the first eight hex digits of a random UUID.

## Using it from Python

```python
from procman import api
from procman.errors import ImageError, ProcStartError

image = api.build_image("web", "0.1.0", "./examples/alpine-basic")
print(image.id, image.created)

for found in api.list_images():
    print(found.name, found.tag)

same = api.get_image("", "web", "0.1.0")
process = api.start_process("web-1", "web", "0.1.0", {"APP_MODE": "dev"})
print(process.id, process.env["APP_MODE"])
api.del_image(same.id, "", "")
```

`procman.api` provides the following functions:

- `build_image(name, tag, context_dir, root)` returns an `ImageInfo`. If an
  image with that name and tag already exists, it raises `ImageError("image
  already exists")` and puts the existing image on the error's `image`
  attribute. A failed build also raises `ImageError`. If the store cannot be
  searched for an existing image, it returns `None`.
- `list_images(root)` returns a list of `ImageInfo`, ordered by image id.
  Entries without readable metadata are skipped. If the store cannot be read,
  the list is empty.
- `get_image(image_id, name, tag, root)` looks an image up by id, or else by
  name and tag. It raises `ImageError("not found")` if there is no match.
- `del_image(image_id, name, tag, root)` looks the image up the same way and
  removes its directory.
- `start_process(name, image_name, image_tag, env, root)` unpacks the image
  into a new process directory. It reads the image's job, and returns a
  `Process` that is also written to `process.yaml`. It raises
  `ProcStartError` on failure. The process environment is this default,
  updated with `env`:
  - `PATH`
  - `HOME=/home`
  - `TERM=xterm-256color`
  - `LANG`, `LANGUAGE` and `LC_ALL` set for `en_US`
  - `PS1`

The lower-level modules raise the more specific errors in `procman.errors`:

| Module | Errors |
| --- | --- |
| `procman.images` | `ImageBuildError`, `ImageGetError`, `ImageListFailure`, `ImageDelError` |
| `procman.image_build` | `ImageBuildError` |
| `procman.process_context` | `ProcStartError` |
| `procman.processes` | `ProcStartError` |

All of these derive from `ProcmanError`. Every function takes an optional
`root` argument that moves the store away from `/var/lib/procman`. Log lines
go to standard error through the `procman` logger.

## Command line

```
procman <tag> [--context DIR] [--root DIR]
```

This builds an image named `test-img` with the given tag from `--context`,
which defaults to `./alpine-basic`. It then starts a process named
`test-proc` from that image.

If the build fails, for example because the image already exists, the failure
is logged and the command still tries to start the process. The exit status is
0 when the process context was prepared and 1 otherwise.

## What it does not do

- Starting a process only prepares its directory and writes `process.yaml`.
  The job command is never run, and the recorded `pid` stays 0.
- There is no way to list, stop or delete processes.
- Every process is recorded with the same fixed port mappings, and nothing
  forwards those ports:
  - 8020 to 3000
  - 8000 to 2000
  - 8080 to 4000
- The `workdir` field of a build step is read but not used.