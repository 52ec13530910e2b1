from pathlib import Path
import random
import pandas as pd

from columns import ADDRESS, MASTER_NUMBER, PARTY_NAME, SALES_PHONE, REPORT_COLUMNS

# Project paths
PROJECT_ROOT = Path(__file__).resolve().parent
DATA_RAW = PROJECT_ROOT / "data" / "raw"

SHOP_WORDS = ["Traders", "Store", "Mart", "Brothers", "Enterprises", "Pharmacy", "General Store"]
OWNER_NAMES = ["Ali", "Bilal", "Hamza", "Usman", "Zain", "Ahmed", "Fahad", "Imran", "Kashif", "Noman"]
STREETS = ["Mall Road", "GT Road", "Circular Road", "Main Bazaar", "Railway Road", "Canal View"]
CITIES = ["Lahore", "Amritsar", "Kasur", "Sheikhupura"]


def _party_name(idx: int) -> str:
    return f"{OWNER_NAMES[idx % len(OWNER_NAMES)]} {random.choice(SHOP_WORDS)} {idx:03d}"


def _phone() -> str:
    return f"0300-{random.randint(1_000_000, 9_999_999)}"


def _address() -> str:
    street = f"{random.randint(1, 250)} {random.choice(STREETS)}, {random.choice(CITIES)}"
    # About two thirds of the registry carries GPS in the address text
    if random.random() < 0.66:
        lat = round(random.uniform(30.9, 31.8), 4)
        lng = round(random.uniform(74.0, 74.9), 4)
        return f"{street} ({lat} {lng})"
    return street


def generate_synthetic_routes(
    num_parties: int = 120,
    num_sales: int = 400,
    unknown_share: float = 0.1,
    master_filename: str = "master_synthetic.xlsx",
    sales_filename: str = "sales_synthetic.xlsx",
    template_filename: str = "route_template.xlsx",
    output_dir: Path = DATA_RAW,
    seed: int | None = None,
) -> dict[str, Path]:
    """
    Generate a synthetic master registry, a sales file and an empty report template.

    - num_parties registered parties with phone + address (some with GPS)
    - num_sales sales rows drawing on those parties, with case/whitespace
      noise in the names and some blank phones
    - unknown_share of sales rows refer to parties missing from master
    """
    if seed is not None:
        random.seed(seed)

    print("Starting synthetic route data generation...")

    master_rows = []
    for idx in range(num_parties):
        master_rows.append(
            {
                PARTY_NAME: _party_name(idx),
                MASTER_NUMBER: _phone(),
                ADDRESS: _address(),
            }
        )

    num_unknown = max(1, num_parties // 10)
    unknown_names = [_party_name(num_parties + i) for i in range(num_unknown)]

    sales_rows = []
    for _ in range(num_sales):
        if random.random() < unknown_share:
            name = random.choice(unknown_names)
        else:
            name = random.choice(master_rows)[PARTY_NAME]

        # Same party, different spelling on the sales side
        noise = random.random()
        if noise < 0.15:
            name = name.upper()
        elif noise < 0.25:
            name = f" {name.lower()} "

        sales_rows.append(
            {
                PARTY_NAME: name,
                SALES_PHONE: _phone() if random.random() < 0.5 else "",
            }
        )

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    paths = {
        "master": output_dir / master_filename,
        "sales": output_dir / sales_filename,
        "template": output_dir / template_filename,
    }
    pd.DataFrame(master_rows, columns=[PARTY_NAME, MASTER_NUMBER, ADDRESS]).to_excel(paths["master"], index=False)
    pd.DataFrame(sales_rows, columns=[PARTY_NAME, SALES_PHONE]).to_excel(paths["sales"], index=False)
    pd.DataFrame(columns=REPORT_COLUMNS).to_excel(paths["template"], index=False)

    print(f"Generated master file:   {paths['master']}  ({len(master_rows)} rows)")
    print(f"Generated sales file:    {paths['sales']}  ({len(sales_rows)} rows)")
    print(f"Generated template file: {paths['template']}  (headers: {', '.join(REPORT_COLUMNS)})")

    return paths


if __name__ == "__main__":
    generate_synthetic_routes()
