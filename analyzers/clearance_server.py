#!/usr/bin/env python3

"""
CherryPy-based web service for link clearance checks.

Link checks run as background jobs that can be polled and cancelled. All
jobs share one terrain provider, so each .hgt tile is read from disk once.

Usage:
    HGT_DIR=~/srtm ./clearance_server.py

Then POST a link to: http://localhost:6566/compute
"""

import cherrypy
import math
import os
import sys
import threading
import time
import traceback
import uuid

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from linkplan import config
from linkplan.clearance import clearance_pct
from linkplan.geodesy import GeoPoint
from linkplan.hgt import infer_bundle, scan_summary, scan_tiles, tiles_for_path
from linkplan.link import analyze_link
from linkplan.profile import SamplingCancelled

# Job storage (in-memory)
jobs = {}
cancel_events = {}
jobs_lock = threading.Lock()


def parse_link_params(params):
    """
    Validate a link request.

    Raises:
        KeyError: If a required endpoint coordinate is missing
        ValueError: If a value is out of range
        TypeError: If a value has the wrong type
    """
    link = {
        'lat1': float(params['lat1']),
        'lon1': float(params['lon1']),
        'lat2': float(params['lat2']),
        'lon2': float(params['lon2']),
        'freq_ghz': float(params.get('freq_ghz', config.DEFAULT_FREQ_GHZ)),
        'height1': float(params.get('height1', config.DEFAULT_ANTENNA_HEIGHT_M)),
        'height2': float(params.get('height2', config.DEFAULT_ANTENNA_HEIGHT_M)),
        'clearance': float(params.get('clearance', config.DEFAULT_CLEARANCE_PCT)),
        'samples': int(params.get('samples', config.DEFAULT_SAMPLES)),
    }

    for key in ('lat1', 'lat2'):
        if not (-90 <= link[key] <= 90):
            raise ValueError("Latitude out of range")
    for key in ('lon1', 'lon2'):
        if not (-180 <= link[key] <= 180):
            raise ValueError("Longitude out of range")
    if not (math.isfinite(link['freq_ghz']) and link['freq_ghz'] > 0):
        raise ValueError("Frequency must be positive")
    if not (math.isfinite(link['height1']) and math.isfinite(link['height2'])
            and link['height1'] >= 0 and link['height2'] >= 0):
        raise ValueError("Antenna heights must not be negative")
    if not (0 < link['clearance'] <= 100):
        raise ValueError("Clearance must be in (0, 100]")
    if link['samples'] < 1 or link['samples'] > 4096:
        raise ValueError("Samples must be between 1 and 4096")

    return link


def link_to_json(link, target_pct):
    """Convert an analyze_link() result to plain JSON-friendly data."""
    data = {k: v for k, v in link.items() if k not in ('samples', 'result')}
    data['violations'] = [list(v) for v in link['violations']]
    data['profile'] = [
        {
            'distance_m': s.distance_m,
            'fresnel_radius_m': s.fresnel_radius_m,
            'terrain_m': s.terrain_m,
            'los_m': s.los_m,
            'required_m': s.los_m - target_pct / 100.0 * s.fresnel_radius_m,
            'clearance_pct': clearance_pct(s),
            'has_data': s.has_data,
        }
        for s in link['samples']
    ]
    return data


class ClearanceServer:
    """CherryPy web service for link clearance checks."""

    def __init__(self, provider, dem_dir=None):
        self.provider = provider
        self.dem_dir = dem_dir

    @cherrypy.expose
    @cherrypy.tools.json_out()
    def index(self):
        return {
            'service': 'link clearance',
            'terrain': self.dem_dir or 'flat',
            'endpoints': ['compute', 'status', 'cancel', 'tiles'],
        }

    @cherrypy.expose
    @cherrypy.tools.json_in()
    @cherrypy.tools.json_out()
    def compute(self):
        """Start a link clearance job."""
        try:
            link_params = parse_link_params(cherrypy.request.json)
        except (KeyError, ValueError, TypeError) as e:
            cherrypy.response.status = 400
            return {"error": f"Missing required field: {e}" if isinstance(e, KeyError) else str(e)}

        job_id = self.submit(link_params)
        return {"job_id": job_id}

    def submit(self, link_params):
        """Queue a validated link and start its worker thread."""
        job_id = uuid.uuid4().hex
        cancel = threading.Event()

        with jobs_lock:
            jobs[job_id] = {
                'status': 'queued',
                'params': link_params,
                'created': time.time(),
            }
            cancel_events[job_id] = cancel

        thread = threading.Thread(
            target=self._run_link_job,
            args=(job_id, link_params, cancel)
        )
        thread.daemon = True
        thread.start()
        return job_id

    def _run_link_job(self, job_id, p, cancel):
        """Background worker for one link."""
        try:
            with jobs_lock:
                jobs[job_id]['status'] = 'running'

            link = analyze_link(
                GeoPoint(p['lat1'], p['lon1']),
                GeoPoint(p['lat2'], p['lon2']),
                p['freq_ghz'] * 1e9,
                self.provider,
                p['height1'], p['height2'],
                target_pct=p['clearance'],
                samples=p['samples'],
                cancel=cancel,
            )

            with jobs_lock:
                jobs[job_id]['status'] = 'completed'
                jobs[job_id]['link'] = link_to_json(link, p['clearance'])
                jobs[job_id]['completed'] = time.time()

        except SamplingCancelled:
            with jobs_lock:
                jobs[job_id]['status'] = 'cancelled'

        except Exception as e:
            print(f"Error in link computation: {e}")
            traceback.print_exc()
            with jobs_lock:
                jobs[job_id]['status'] = 'failed'
                jobs[job_id]['error'] = str(e)

        finally:
            with jobs_lock:
                cancel_events.pop(job_id, None)

    @cherrypy.expose
    @cherrypy.tools.json_out()
    def status(self, job_id):
        """Get status of a link job."""
        with jobs_lock:
            if job_id not in jobs:
                cherrypy.response.status = 404
                return {"error": "Job not found"}

            job = jobs[job_id].copy()

        return job

    @cherrypy.expose
    @cherrypy.tools.json_out()
    def cancel(self, job_id):
        """Ask a running job to stop at its next sample."""
        with jobs_lock:
            if job_id not in jobs:
                cherrypy.response.status = 404
                return {"error": "Job not found"}

            event = cancel_events.get(job_id)
            if event is not None:
                event.set()
            status = jobs[job_id]['status']

        return {"job_id": job_id, "status": status}

    @cherrypy.expose
    @cherrypy.tools.json_out()
    def tiles(self, lat1, lon1, lat2, lon2, margin=0):
        """List the terrain tiles a link needs and whether they are present."""
        if not self.dem_dir:
            cherrypy.response.status = 400
            return {"error": "No terrain directory configured"}

        try:
            a = GeoPoint(float(lat1), float(lon1))
            b = GeoPoint(float(lat2), float(lon2))
            for p in (a, b):
                if not (-90 <= p.lat <= 90):
                    raise ValueError("Latitude out of range")
                if not (-180 <= p.lon <= 180):
                    raise ValueError("Longitude out of range")
            margin = int(margin)
            if not (0 <= margin <= config.MAX_TILE_MARGIN):
                raise ValueError(f"Margin must be between 0 and {config.MAX_TILE_MARGIN}")
        except (ValueError, TypeError) as e:
            cherrypy.response.status = 400
            return {"error": str(e)}

        statuses = scan_tiles(self.dem_dir, tiles_for_path(a, b, margin=margin))
        return {
            'tiles': [
                {
                    'name': s.name,
                    'exists': s.exists,
                    'path': s.path,
                    'bundle': infer_bundle(s.name),
                }
                for s in statuses
            ],
            'summary': scan_summary(statuses),
        }


def main():
    """Start the CherryPy web server."""
    dem_dir = config.dem_dir()

    print("=" * 70)
    print("LINK CLEARANCE WEB SERVICE")
    print("=" * 70)
    print(f"Starting server on http://{config.HOST}:{config.PORT}")
    print(f"Terrain: {dem_dir or 'flat (set HGT_DIR for .hgt tiles)'}")
    print("Press Ctrl+C to stop")
    print("=" * 70)

    cherrypy.config.update({
        'server.socket_host': config.HOST,
        'server.socket_port': config.PORT,
        'log.screen': True,
        'engine.autoreload.on': False,
    })

    cherrypy.quickstart(ClearanceServer(config.make_provider(dem_dir), dem_dir), '/')


if __name__ == '__main__':
    main()
