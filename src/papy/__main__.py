from papy.cli import run

run()
