from ufwprofile.cli import run

run()
