# Copyright 2013-2024 Lawrence Livermore National Security, LLC and other
# Spack Project Developers. See the top-level COPYRIGHT file for details.
#
# SPDX-License-Identifier: (Apache-2.0 OR MIT)

from lmpkg.package import *

# user-submitted packages not considered "standard"
# 'user-omp' must be last
USER_PACKAGES = [
    "user-misc",
    "user-awpmd",
    "user-cg-cmm",
    "user-colvars",
    "user-eff",
    "user-molfile",
    "user-reaxc",
    "user-sph",
    "user-omp",
]

# gpu and user-cuda need hardware support, kim needs the openkim software
DISABLED_PACKAGES = ["gpu", "kim"]

# user-atc does not build without mpi and then does not link to blas/lapack
DISABLED_USER_PACKAGES = ["user-atc", "user-cuda"]

MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

LIB_MAKEFILES = {
    "FC": ("Makefile.gfortran", "F90"),
    "CXX": ("Makefile.g++", "CC"),
    "MPICXX": ("Makefile.openmpi", "CC"),
}


class Lammps(Package):
    """LAMMPS stands for Large-scale Atomic/Molecular Massively Parallel
    Simulator. This package builds the serial or MPI executable, the shared
    library and its Python module with the makefiles shipped in the source."""

    homepage = "http://lammps.sandia.gov"
    url = "http://lammps.sandia.gov/tars/lammps-12Feb13.tar.gz"
    git = "http://git.icms.temple.edu/lammps-ro.git"

    license("GPL-2.0-only")

    version("develop", branch="master")
    # releases are named after their date, versioned as YEAR.MONTH.DAY so they compare
    version("2013.02.12", sha1="e4c1cc179e8159e7bd2dd958d3f5c8909a315af8")

    for user_pkg in USER_PACKAGES:
        variant(user_pkg, default=False, description=f"Build lammps with the '{user_pkg}' package")

    variant("mpi", default=False, description="Build lammps with MPI support")

    depends_on("fftw")
    depends_on("jpeg")
    depends_on("voro++")
    depends_on("gfortran", type="build")
    depends_on("mpi", when="+mpi")
    # OpenMP needs a recent gcc
    depends_on("gcc", when="+user-omp", type="build")

    # user-omp assumes GNU tools, breaking on BSD userlands
    patch(
        "https://gist.github.com/scicalculator/4759616/raw/3b9b1ad9b38f0f20a52e63e8c7add9780056b2ca/user-omp_bsd.patch",
        when="+user-omp",
    )

    phases = ["build", "install"]

    # not parallel safe (some packages have race conditions, e.g. meam)
    parallel = False

    def url_for_version(self, version):
        year, month, day = str(version).split(".")
        name = f"{int(day)}{MONTHS[int(month) - 1]}{year[-2:]}"
        return f"http://lammps.sandia.gov/tars/lammps-{name}.tar.gz"

    def patch(self):
        # load the shared library from the prefix, not from the loader path
        filter_file(
            r'CDLL\("liblammps', f'CDLL("{self.prefix.lib}/liblammps', join_path("python", "lammps.py")
        )

    def setup_build_environment(self, env):
        env.append_flags("CFLAGS", "-O")
        env.append_flags("LDFLAGS", "-O")

        if self.spec.satisfies("+user-omp"):
            gcc = self.spec["gcc"].prefix
            env.set("CXX", gcc.bin.join("g++"))
            # the openmpi wrapper must use the same compiler
            env.set("OMPI_MPICXX", gcc.bin.join("g++"))
            env.append_flags("CFLAGS", "-fopenmp")
            env.append_flags("LDFLAGS", f"-L{gcc}/gcc/lib -lgomp")

    def _append_ldflags(self, flags):
        env["LDFLAGS"] = f"{env['LDFLAGS']} {flags}" if env.get("LDFLAGS") else flags

    def build_lib(self, comp, lmp_lib, non_std_repl=None, var_add=""):
        """Build the bundled library ``lib/<lmp_lib>`` with its own makefile.

        Args:
            comp: ``FC``, ``CXX`` or ``MPICXX``, selecting the makefile and
                the compiler variable replaced in it
            lmp_lib: directory name of the library under ``lib``
            non_std_repl: makefile variable holding the compiler, when it is
                not the usual one
            var_add: prefix of the variable names in ``Makefile.lammps``
        """
        make_file, repl = LIB_MAKEFILES[comp]
        if non_std_repl:
            repl = non_std_repl
        if comp == "MPICXX":
            comp = "CXX"

        compiler_var = "MPI" + comp if self.spec.satisfies("+mpi") else comp
        compiler = env.get(compiler_var)
        if not compiler:
            raise InstallError(f"{compiler_var} is not set, cannot build lib/{lmp_lib}")

        with working_dir(join_path("lib", lmp_lib)):
            change_make_var(make_file, repl, compiler)
            make("-f", make_file)

            if os.path.exists("Makefile.lammps"):
                # empty it to reduce chance of conflicts
                change_make_vars(
                    "Makefile.lammps",
                    {
                        f"{var_add}{lmp_lib}_SYSINC": "",
                        f"{var_add}{lmp_lib}_SYSLIB": "",
                        f"{var_add}{lmp_lib}_SYSPATH": "",
                    },
                )

    def build(self, spec, prefix):
        self.build_lib("FC", "reax")
        self.build_lib("FC", "meam")
        self.build_lib("CXX", "poems")
        if spec.satisfies("+user-colvars"):
            self.build_lib("CXX", "colvars", non_std_repl="CXX")
        if spec.satisfies("+user-awpmd +mpi"):
            self.build_lib("MPICXX", "awpmd", var_add="user-")
            self._append_ldflags("-lblas -llapack")

        # gfortran is assumed to be the fortran runtime
        self._append_ldflags(f"-L{spec['gfortran'].prefix}/gfortran/lib -lgfortran")

        with working_dir("src"):
            # "make mac" gives a clean slate; "mac_mpi" has unneeded settings
            if spec.satisfies("+mpi"):
                make_vars = {
                    "CC": env["MPICXX"],
                    "LINK": env["MPICXX"],
                    # speeds up c++ compilation
                    "MPI_INC": "-DOMPI_SKIP_MPICXX",
                    "MPI_PATH": "",
                    "MPI_LIB": "",
                }
            else:
                make_vars = {"CC": env["CXX"], "LINK": env["CXX"]}

            fftw = spec["fftw"].prefix
            jpeg = spec["jpeg"].prefix
            make_vars.update(
                {
                    "FFT_INC": f"-DFFT_FFTW3 -I{fftw.include}",
                    "FFT_PATH": f"-L{fftw.lib}",
                    "FFT_LIB": "-lfftw3",
                    "JPG_INC": f"-DLAMMPS_JPEG -I{jpeg.include}",
                    "JPG_PATH": f"-L{jpeg.lib}",
                    "JPG_LIB": "-ljpeg",
                    "CCFLAGS": env.get("CFLAGS", ""),
                    "LIB": env.get("LDFLAGS", ""),
                }
            )
            change_make_vars(join_path("MAKE", "Makefile.mac"), make_vars)

            change_make_var(
                join_path("VORONOI", "Makefile.lammps"),
                "voronoi_SYSINC",
                f"-I{spec['voro++'].prefix.include}/voro++",
            )

            make("yes-standard")
            for pkg in DISABLED_PACKAGES:
                make("no-" + pkg)
            for pkg in USER_PACKAGES:
                if spec.satisfies("+" + pkg):
                    make("yes-" + pkg)

            if not spec.satisfies("+mpi"):
                # fake mpi library
                with working_dir("STUBS"):
                    make()

            make("mac")
            rename("lmp_mac", "lammps")

            make("makeshlib")
            make("-f", "Makefile.shlib", "mac")

    def python_site_packages(self):
        """``lib/pythonX.Y/site-packages`` under the prefix, for the build's python."""
        python_version = python(
            "-c", "import sys; print('%d.%d' % sys.version_info[:2])", output=str
        ).strip()
        return join_path(self.prefix.lib, f"python{python_version}", "site-packages")

    def install(self, spec, prefix):
        with working_dir("src"):
            mkdirp(prefix.bin, prefix.lib)
            install("lammps", prefix.bin)
            install("liblammps_mac.so", prefix.lib)
            # a link to liblammps_mac.so
            install("liblammps.so", prefix.lib)

        with working_dir("python"):
            site_packages = self.python_site_packages()
            mkdirp(site_packages)
            env["PYTHONPATH"] = site_packages

            python("install.py", prefix.lib, site_packages)
            rename("examples", "python-examples")
            install_tree("python-examples", prefix.share.lammps.join("python-examples"))

        for dirname in ["doc", "potentials", "tools", "bench"]:
            install_tree(dirname, prefix.share.lammps.join(dirname))

    def test_bench_lj(self):
        """run the Lennard-Jones benchmark"""
        lammps = Executable(self.prefix.bin.lammps)
        lammps("-in", self.prefix.share.lammps.bench.join("in.lj"))

    def test_python_module(self):
        """run the Lennard-Jones benchmark through the python module"""
        in_lj = self.prefix.share.lammps.bench.join("in.lj")
        python(
            "-c",
            f"from lammps import lammps; lammps().file('{in_lj}')",
            extra_env={"PYTHONPATH": self.python_site_packages()},
        )

    @property
    def caveats(self):
        share = self.prefix.share.lammps
        return f"""\
You should run a benchmark test or two. There are plenty available.

  cd {share.bench}
  lammps -in in.lj
  # with mpi
  mpiexec -n 2 lammps -in in.lj

The following directories could come in handy

  Documentation:
  {share.doc}/Manual.html

  Potential files:
  {share.potentials}

  Python examples:
  {share.join("python-examples")}

  Additional tools (may require manual installation):
  {share.tools}

To use the Python module with a Python other than the one used for the
build, you need to amend your PYTHONPATH like so:
  export PYTHONPATH={self.python_site_packages()}:$PYTHONPATH
"""
