"""
Preview Entry Point
===================
Places an inscription and a pattern on a sample tablet and shows the result
in a pyvista window.

Why is this file needed?
------------------------
It runs the whole core the way the designer front end drives it: a session,
a published host, decorations attached through the controller, a few frame
ticks, and pyvista actors updated through `ActorNode`.

Usage:
    $ python run.py "IN LOVING MEMORY" [curvature] [pattern.png]
"""
import logging
import sys

import pyvista as pv
from PySide6.QtCore import QCoreApplication

from monumentdesigner.app.application import DesignSession
from monumentdesigner.app.state import new_art, new_text
from monumentdesigner.controller.raster_loader import load_raster
from monumentdesigner.errors import ResourceLoadError
from monumentdesigner.model import HostSurface, HostTransform, Vector, WorldPose
from monumentdesigner.view.scene_nodes import (
    ActorNode,
    build_art_plane,
    build_art_texture,
    build_glyph_run_mesh,
)

logger = logging.getLogger(__name__)


def main() -> None:
    app = QCoreApplication.instance() or QCoreApplication(sys.argv)
    content = sys.argv[1] if len(sys.argv) > 1 else "IN LOVING MEMORY"
    curvature = float(sys.argv[2]) if len(sys.argv) > 2 else 20.0
    pattern_path = sys.argv[3] if len(sys.argv) > 3 else None

    session = DesignSession(log_level=logging.INFO)
    session.store.notice.connect(lambda message: print(f"Notice: {message}"))

    # 1. Host: a 1.2 x 0.8 x 0.15 m tablet, slightly rotated
    tablet_mesh = pv.Box(bounds=(-0.6, 0.6, -0.4, 0.4, -0.075, 0.075))
    host = HostSurface.from_mesh("tablet", tablet_mesh, HostTransform(position=Vector(0.0, 0.4, 0.0)))
    session.hosts.publish_surface(host)

    plotter = pv.Plotter()
    plotter.add_mesh(tablet_mesh.transform(_host_matrix(host), inplace=False), color="dimgray")

    # 2. Inscription
    text = new_text(content, host_id="tablet", size=3.0, curvature=curvature)
    session.store.add_decoration(text)
    run = session.controller.glyph_run(text.id)
    text_actor = plotter.add_mesh(build_glyph_run_mesh(run, depth=text.payload.thickness), color="gold")
    session.controller.attach_decoration(text.id, ActorNode(text_actor))

    # 3. Pattern (loaded synchronously for the preview)
    if pattern_path:
        art = new_art(pattern_path, host_id="tablet")
        session.store.add_decoration(art)
        try:
            session.controller.on_raster_loaded(art.id, load_raster(pattern_path))
        except ResourceLoadError as e:
            session.store.post_notice(str(e))
        else:
            raster = art.payload.raster
            art_actor = plotter.add_mesh(build_art_plane(raster), texture=build_art_texture(raster))
            session.controller.attach_decoration(art.id, ActorNode(art_actor, art.scale))

    # 4. Let the controller initialise and flush
    for _ in range(2):
        session.clock.tick()
    app.processEvents()

    plotter.show()
    session.close()


def _host_matrix(host: HostSurface):
    return WorldPose(host.transform.position, host.transform.rotation).to_matrix(host.transform.scale)


if __name__ == "__main__":
    main()
