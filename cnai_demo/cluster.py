# /*
# Copyright 2026 The CNAI Demo Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""kind cluster bootstrap and image preloading."""

from __future__ import annotations

import sys
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed

import docker
import sh
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskID, TaskProgressColumn, TextColumn

from cnai_demo import console, logger
from cnai_demo.errors import InstallerError


class ImagePreloadError(InstallerError):
    """An image could not be pulled or loaded into the kind cluster."""


# ============================================================================
# Cluster bootstrap
# ============================================================================

def bootstrap_cluster(install_script_url: str) -> None:
    """Create the kind cluster with the kagenti operator.

    Fetches the upstream install script and runs it with bash, streaming its
    output.

    Args:
        install_script_url: URL of the kagenti operator install script.

    Raises:
        sh.ErrorReturnCode: If fetching or running the script fails.
    """
    console.print(Panel.fit("Creating kind cluster with kagenti operator", style="bold blue"))
    logger.info("Fetching install script from %s", install_script_url)
    script = str(sh.curl("-sSL", install_script_url))
    sh.bash(_in=script, _out=sys.stdout, _err=sys.stderr)
    console.print("[green]\u2705 Cluster bootstrapped[/green]")


# ============================================================================
# Image preloading
# ============================================================================

def _pull_and_load(
    docker_client: docker.DockerClient,
    image: str,
    cluster_name: str,
    abort: threading.Event | None = None,
) -> str | None:
    """Pull one image, then load it into every node of the kind cluster.

    Returns:
        The image, or None if ``abort`` was set before the image was loaded.
    """
    if abort is not None and abort.is_set():
        return None
    try:
        docker_client.images.pull(image)
    except docker.errors.APIError as e:
        raise ImagePreloadError(f"Failed to pull {image}: {e}") from e
    if abort is not None and abort.is_set():
        logger.info("Preload aborted, not loading %s", image)
        return None
    logger.info("Loading image into kind cluster %s: %s", cluster_name, image)
    sh.kind("load", "docker-image", image, "--name", cluster_name)
    return image


def _preload_concurrently(
    docker_client: docker.DockerClient,
    images: list[str],
    cluster_name: str,
    max_workers: int,
    progress: Progress,
    task: TaskID,
) -> None:
    """Preload images on a thread pool, stopping all work at the first failure."""
    abort = threading.Event()

    def _run(image: str) -> str | None:
        try:
            return _pull_and_load(docker_client, image, cluster_name, abort)
        except Exception:
            abort.set()
            raise

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {executor.submit(_run, image): image for image in images}
        try:
            for future in as_completed(futures):
                if future.result() is None:
                    continue
                progress.advance(task)
                console.print(f"[green]\u2713 {futures[future]}[/green]")
        except Exception:
            abort.set()
            executor.shutdown(wait=True, cancel_futures=True)
            raise


def preload_images(images: list[str], cluster_name: str, max_workers: int = 1) -> None:
    """Pull images and load them into the kind cluster's node image cache.

    Each image is pulled before it is loaded. With ``max_workers=1`` images
    are processed strictly in order, one fully before the next. Any failure
    aborts the preload.

    Args:
        images: Ordered image references.
        cluster_name: Name of the target kind cluster.
        max_workers: Number of images processed concurrently.

    Raises:
        ImagePreloadError: If Docker is unreachable or a pull fails.
        sh.ErrorReturnCode: If ``kind load`` fails.
    """
    if not images:
        return

    console.print(Panel.fit("Preloading images into kind", style="bold blue"))
    console.print(f"[yellow]Preloading {len(images)} images to avoid registry pull rate limiting...[/yellow]")

    try:
        docker_client = docker.from_env()
    except docker.errors.DockerException as e:
        raise ImagePreloadError(f"Failed to connect to Docker: {e}") from e

    try:
        with Progress(
            SpinnerColumn(), TextColumn("[progress.description]{task.description}"),
            BarColumn(), TaskProgressColumn(), console=console,
        ) as progress:
            task = progress.add_task("[cyan]Preloading images...", total=len(images))
            if max_workers <= 1:
                for image in images:
                    _pull_and_load(docker_client, image, cluster_name)
                    progress.advance(task)
                    console.print(f"[green]\u2713 {image}[/green]")
            else:
                _preload_concurrently(docker_client, images, cluster_name, max_workers, progress, task)
    finally:
        docker_client.close()

    console.print("[green]\u2705 All specified images have been preloaded into kind[/green]")
