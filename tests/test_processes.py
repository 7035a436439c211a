import tarfile
from pathlib import Path

import pytest
import yaml

from procman.errors import ProcStartError
from procman.models import Image, ImageJob, ProcessCreate, ProcessCreateImage
from procman.process_context import default_job_env
from procman.processes import start_process

JOB = {"name": "web", "command": ["sh", "-c", "echo hi"]}


def _seed_image(root: Path, image_id="abcd1234", name="test-img", tag="0.0.5", job=JOB):
    staging = root / "staging" / image_id
    conf_dir = staging / "rootfs" / "etc" / "procman"
    conf_dir.mkdir(parents=True)
    if job is not None:
        (conf_dir / "job.yaml").write_text(yaml.safe_dump(job), encoding="utf-8")

    image_dir = root / "img" / image_id
    image_dir.mkdir(parents=True)
    with tarfile.open(image_dir / "img.tar.gz", "w:gz") as archive:
        archive.add(staging / "rootfs", arcname="rootfs")

    image = Image(id=image_id, name=name, img_path=str(image_dir), tag=tag, created="now")
    (image_dir / "img.yaml").write_text(yaml.safe_dump(image.to_dict()), encoding="utf-8")
    return image


def _create(env=None, tag="0.0.5"):
    return ProcessCreate(
        name="test-proc",
        image=ProcessCreateImage(name="test-img", tag=tag),
        env=env or {},
    )


def test_start_process_reads_job_and_records_process(tmp_path):
    image = _seed_image(tmp_path)
    process = start_process(_create({"FOO": "bar"}), str(tmp_path))

    assert process.name == "test-proc"
    assert process.image.id == image.id
    assert process.job == ImageJob(name=JOB["name"], command=JOB["command"])
    assert process.context_dir == f"{tmp_path}/proc/{process.id}"

    conf = Path(process.context_dir) / "rootfs" / "etc" / "procman" / "process.yaml"
    assert yaml.safe_load(conf.read_text(encoding="utf-8")) == process.to_dict()


def test_start_process_removes_copied_archive(tmp_path):
    _seed_image(tmp_path)
    process = start_process(_create(), str(tmp_path))
    assert not (Path(process.context_dir) / "img.tar.gz").exists()
    assert (Path(process.context_dir) / "rootfs").is_dir()


def test_start_process_env_merges_defaults(tmp_path):
    _seed_image(tmp_path)
    process = start_process(_create({"FOO": "bar", "HOME": "/root"}), str(tmp_path))
    defaults = default_job_env()
    assert process.env["FOO"] == "bar"
    assert process.env["HOME"] == "/root"
    assert process.env["PATH"] == defaults["PATH"]
    assert set(defaults) <= set(process.env)


def test_start_process_sets_port_mappings(tmp_path):
    _seed_image(tmp_path)
    process = start_process(_create(), str(tmp_path))
    pairs = [(port.host_port, port.proc_port) for port in process.network.ports]
    assert pairs == [(8020, 3000), (8000, 2000), (8080, 4000)]


def test_start_process_gives_each_process_its_own_id(tmp_path):
    _seed_image(tmp_path)
    first = start_process(_create(), str(tmp_path))
    second = start_process(_create(), str(tmp_path))
    assert first.id != second.id
    assert sorted(p.name for p in (tmp_path / "proc").iterdir()) == sorted(
        [first.id, second.id]
    )


def test_start_process_without_image_fails(tmp_path):
    with pytest.raises(ProcStartError) as info:
        start_process(_create(tag="9.9.9"), str(tmp_path))
    assert "error starting process" in info.value.message


def test_start_process_without_job_fails(tmp_path):
    _seed_image(tmp_path, job=None)
    with pytest.raises(ProcStartError) as info:
        start_process(_create(), str(tmp_path))
    assert "not found" in info.value.message
    assert info.value.code == 500