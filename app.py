import logging

import click
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

# Import blueprints
from scheduler_modules import auto_scheduler_bp, schedules_bp, conflicts_bp
from scheduler_modules.auto_scheduler import generate_schedule
from scheduler_modules.config import AppConfig, db_config_from
from scheduler_modules.db import init_schema
from scheduler_modules.errors import SchedulerError
from scheduler_modules.stores import get_catalog_store, get_result_store, init_stores

logger = logging.getLogger(__name__)

BLUEPRINTS = [auto_scheduler_bp, schedules_bp, conflicts_bp]


# ==================== LOGGING ====================
def setup_logging(level):
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


# ==================== ERROR HANDLERS ====================
def register_error_handlers(app):

    @app.errorhandler(SchedulerError)
    def scheduler_error(error):
        if error.status_code >= 500:
            logger.error(f"{type(error).__name__}: {error.message}")
        else:
            logger.warning(f"{type(error).__name__}: {error.message}")
        return jsonify({'error': error.message}), error.status_code

    @app.errorhandler(HTTPException)
    def http_error(error):
        return jsonify({'error': error.description}), error.code

    @app.errorhandler(Exception)
    def internal_error(error):
        logger.exception(f"Internal Server Error: {error}")
        return jsonify({'error': 'Internal server error'}), 500


# ==================== CLI ====================
def register_commands(app):

    @app.cli.command('init-db')
    def init_db_command():
        """Create the catalog and schedule tables."""
        init_schema(db_config_from(app.config))
        click.echo("Database initialised.")

    @app.cli.command('generate')
    @click.option('--semester', type=click.IntRange(1, 2), default=None)
    @click.option('--academic-year', default=None)
    @click.option('--section', 'section_ids', multiple=True, help="Limit the run to these section ids.")
    @click.option('--seed', type=int, default=None)
    def generate_command(semester, academic_year, section_ids, seed):
        """Generate the timetable and store it."""
        try:
            result = generate_schedule(
                get_catalog_store(), get_result_store(),
                semester or app.config['DEFAULT_SEMESTER'],
                academic_year or app.config['DEFAULT_ACADEMIC_YEAR'],
                section_ids=list(section_ids) or None,
                seed=seed if seed is not None else app.config.get('SCHEDULER_SEED'),
                weekly_cap=app.config['MAX_HOURS_PER_WEEK'],
                daily_cap=app.config['MAX_HOURS_PER_DAY'],
            )
        except SchedulerError as err:
            raise click.ClickException(err.message)
        report = result.report
        click.echo(
            f"Assigned {report.total_assigned} of {report.total_pairs} pairs "
            f"({report.total_hours_assigned}/{report.total_hours_needed} hours); "
            f"{report.total_unassigned} unassigned."
        )


# ==================== APPLICATION INITIALIZATION ====================
def create_app(config=None, catalog_store=None, result_store=None):
    app = Flask(__name__)
    app.config.from_object(AppConfig)
    if config:
        app.config.update(config)

    setup_logging(app.config.get('LOG_LEVEL', 'INFO'))

    init_stores(app, catalog_store=catalog_store, result_store=result_store)
    for blueprint in BLUEPRINTS:
        app.register_blueprint(blueprint)
    register_error_handlers(app)
    register_commands(app)
    return app


app = create_app()

if __name__ == '__main__':
    app.run(debug=True)
