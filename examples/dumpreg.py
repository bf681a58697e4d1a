import sys
from pathlib import Path

from dissect.regexport import regexport


def main() -> None:
    with Path(sys.argv[1]).open("rb") as fh:
        export = regexport.RegistryExport(fh)

        for hive, key_path in export.keys():
            print(f"[{hive.value}\\{key_path}]")

            for record in export.open(f"{hive.value}\\{key_path}"):
                print(" ", record.name or "(Default)", record.type.name, repr(record.data))


if __name__ == "__main__":
    main()
